"""An in-memory file store with per-file attributes."""

from dataclasses import dataclass, field

ERR_NOENT = -2
ERR_FBIG = -27
ERR_INVAL = -22
ERR_NOSPC = -28
ERR_NAMETOOLONG = -36
ERR_NOATTR = -61

NAME_MAX = 255
ATTR_MAX = 1022
FILE_MAX = 2147483647


class StorageError(Exception):
    """A storage operation failed; ``code`` holds the file-system error number."""

    def __init__(self, message, code):
        super().__init__(message)
        self.code = code


@dataclass
class _Entry:
    content: bytearray = field(default_factory=bytearray)
    attrs: dict = field(default_factory=dict)


class MemoryStorage:
    """Files addressed by name, each with byte attributes keyed 0-255."""

    def __init__(self):
        self._files = {}

    def __contains__(self, path):
        return path in self._files

    @staticmethod
    def _check_name(path):
        if not path:
            raise StorageError("empty path", ERR_INVAL)
        if len(path.encode()) > NAME_MAX:
            raise StorageError(f"name too long: {path!r}", ERR_NAMETOOLONG)

    def _entry(self, path):
        self._check_name(path)
        try:
            return self._files[path]
        except KeyError:
            raise StorageError(f"no such file: {path!r}", ERR_NOENT) from None

    def _open_for_write(self, path):
        self._check_name(path)
        return self._files.setdefault(path, _Entry())

    @staticmethod
    def _check_attr(attr):
        if not 0 <= attr <= 0xFF:
            raise StorageError(f"invalid attribute type {attr}", ERR_INVAL)

    def read_file(self, path, offset=0, length=None):
        """Read up to ``length`` bytes from ``offset``; fewer at end of file."""
        if offset < 0:
            raise StorageError("negative offset", ERR_INVAL)
        content = self._entry(path).content
        end = len(content) if length is None else offset + length
        return bytes(content[offset:end])

    def write_file(self, path, data=b"", offset=0, truncate=True):
        """Write ``data`` at ``offset``, creating the file; return bytes written."""
        if offset < 0:
            raise StorageError("negative offset", ERR_INVAL)
        data = bytes(data or b"")
        if offset + len(data) > FILE_MAX:
            raise StorageError("file too large", ERR_FBIG)
        entry = self._open_for_write(path)
        if truncate:
            entry.content.clear()
        content = entry.content
        if offset > len(content):
            content.extend(bytes(offset - len(content)))
        content[offset:offset + len(data)] = data
        return len(data)

    def append_file(self, path, data):
        """Append ``data``, creating the file; return bytes written."""
        data = bytes(data)
        entry = self._open_for_write(path)
        if len(entry.content) + len(data) > FILE_MAX:
            raise StorageError("file too large", ERR_FBIG)
        entry.content.extend(data)
        return len(data)

    def truncate_file(self, path, length):
        """Cut or zero-extend the file to ``length`` bytes, creating it."""
        if not 0 <= length <= FILE_MAX:
            raise StorageError("invalid length", ERR_INVAL)
        content = self._open_for_write(path).content
        if length < len(content):
            del content[length:]
        else:
            content.extend(bytes(length - len(content)))

    def read_attr(self, path, attr):
        """Return the value of an attribute of an existing file."""
        self._check_attr(attr)
        try:
            return self._entry(path).attrs[attr]
        except KeyError:
            raise StorageError(f"no attribute {attr} on {path!r}", ERR_NOATTR) from None

    def write_attr(self, path, attr, value):
        """Set an attribute of an existing file."""
        self._check_attr(attr)
        value = bytes(value)
        if len(value) > ATTR_MAX:
            raise StorageError("attribute too large", ERR_NOSPC)
        self._entry(path).attrs[attr] = value

    def file_size(self, path):
        """Return the size of an existing file in bytes."""
        return len(self._entry(path).content)

    def rename(self, old, new):
        """Move a file with its attributes, replacing any file at ``new``."""
        entry = self._entry(old)
        self._check_name(new)
        if old == new:
            return
        self._files[new] = entry
        del self._files[old]