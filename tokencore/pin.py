"""Retry-limited PIN records kept in a file store."""

import hmac
from contextlib import contextmanager

from tokencore.storage import StorageError

PIN_MAX_LENGTH = 64

_RETRY_ATTR = 0
_DEFAULT_RETRY_ATTR = 1


class PinError(Exception):
    """Base class of PIN failures."""


class PinIOError(PinError):
    """The PIN record could not be read or written."""


class PinAuthError(PinError):
    """The PIN did not match or is blocked; ``retries`` is what remains."""

    def __init__(self, retries):
        super().__init__(f"PIN verification failed, {retries} retries left")
        self.retries = retries


class PinLengthError(PinError):
    """The PIN is shorter or longer than allowed."""


class Pin:
    """A PIN stored at ``path`` with a retry counter and its default."""

    def __init__(self, storage, path, min_length, max_length):
        self.storage = storage
        self.path = path
        self.min_length = min_length
        self.max_length = max_length
        self.is_validated = False

    @contextmanager
    def _io(self):
        try:
            yield
        except StorageError as exc:
            raise PinIOError(str(exc)) from exc

    def _check_length(self, value):
        if not self.min_length <= len(value) <= self.max_length:
            raise PinLengthError(
                f"PIN length must be between {self.min_length} and {self.max_length}"
            )

    def _read_counter(self, attr):
        value = self.storage.read_attr(self.path, attr)
        return value[0] if value else 0

    def _write_counter(self, value):
        self.storage.write_attr(self.path, _RETRY_ATTR, bytes([value]))

    def _reset_counter(self):
        self._write_counter(self._read_counter(_DEFAULT_RETRY_ATTR))

    def create(self, value, max_retries):
        """Store a new PIN and set both counters to ``max_retries``."""
        counter = bytes([max_retries])
        with self._io():
            self.storage.write_file(self.path, bytes(value), 0, True)
            self.storage.write_attr(self.path, _RETRY_ATTR, counter)
            self.storage.write_attr(self.path, _DEFAULT_RETRY_ATTR, counter)

    def verify(self, value):
        """Check ``value``; on a match mark the PIN validated and reset retries."""
        self.is_validated = False
        value = bytes(value)
        self._check_length(value)
        with self._io():
            counter = self._read_counter(_RETRY_ATTR)
            if counter == 0:
                raise PinAuthError(0)
            stored = self.storage.read_file(self.path, 0, PIN_MAX_LENGTH)
            if not hmac.compare_digest(stored, value):
                counter -= 1
                self._write_counter(counter)
                raise PinAuthError(counter)
            self.is_validated = True
            self._reset_counter()

    def update(self, value):
        """Replace the PIN and restore the default retry count."""
        value = bytes(value)
        self._check_length(value)
        self.is_validated = False
        with self._io():
            self.storage.write_file(self.path, value, 0, True)
            self._reset_counter()

    def size(self):
        """Return the stored PIN length."""
        with self._io():
            return self.storage.file_size(self.path)

    def retries(self):
        """Return the remaining retries, or 0 when no PIN is set."""
        if self.size() == 0:
            return 0
        with self._io():
            return self._read_counter(_RETRY_ATTR)

    def default_retries(self):
        """Return the configured retry limit, or 0 when no PIN is set."""
        if self.size() == 0:
            return 0
        with self._io():
            return self._read_counter(_DEFAULT_RETRY_ATTR)

    def clear(self):
        """Erase the PIN and restore the default retry count."""
        with self._io():
            self.storage.write_file(self.path, b"", 0, True)
            self._reset_counter()