import pytest

from tokencore.storage import (
    ATTR_MAX,
    ERR_NOATTR,
    ERR_NOENT,
    ERR_NOSPC,
    MemoryStorage,
    StorageError,
)


@pytest.fixture
def store():
    return MemoryStorage()


def test_write_then_read_round_trip(store):
    assert store.write_file("f", b"hello") == 5
    assert store.read_file("f", 0, 5) == b"hello"
    assert store.file_size("f") == 5


def test_read_is_limited_by_length_and_end(store):
    store.write_file("f", b"abcdef")
    assert store.read_file("f", 2, 2) == b"cd"
    assert store.read_file("f", 4, 100) == b"ef"
    assert store.read_file("f", 10, 4) == b""


def test_write_without_truncate_keeps_tail(store):
    store.write_file("f", b"abcdef")
    store.write_file("f", b"XY", 1, False)
    assert store.read_file("f") == b"aXYdef"


def test_truncating_write_replaces_content(store):
    store.write_file("f", b"abcdef")
    store.write_file("f", b"XY", 0, True)
    assert store.read_file("f") == b"XY"


def test_write_past_end_pads_with_zeros(store):
    store.write_file("f", b"ab")
    store.write_file("f", b"cd", 5, False)
    assert store.read_file("f") == b"ab" + bytes(3) + b"cd"


def test_append_and_truncate(store):
    store.append_file("f", b"abc")
    store.append_file("f", b"def")
    assert store.read_file("f") == b"abcdef"
    store.truncate_file("f", 2)
    assert store.read_file("f") == b"ab"
    store.truncate_file("f", 4)
    assert store.read_file("f") == b"ab" + bytes(2)


def test_missing_file_raises_noent(store):
    with pytest.raises(StorageError) as exc:
        store.read_file("missing")
    assert exc.value.code == ERR_NOENT
    with pytest.raises(StorageError) as exc:
        store.file_size("missing")
    assert exc.value.code == ERR_NOENT


def test_attributes_round_trip_and_survive_truncation(store):
    store.write_file("f", b"data")
    store.write_attr("f", 1, b"\x03")
    store.write_file("f", b"", 0, True)
    assert store.read_attr("f", 1) == b"\x03"
    assert store.file_size("f") == 0


def test_missing_attribute_raises_noattr(store):
    store.write_file("f", b"data")
    with pytest.raises(StorageError) as exc:
        store.read_attr("f", 7)
    assert exc.value.code == ERR_NOATTR


def test_attribute_on_missing_file_raises_noent(store):
    with pytest.raises(StorageError) as exc:
        store.write_attr("missing", 0, b"\x01")
    assert exc.value.code == ERR_NOENT


def test_attribute_size_limit(store):
    store.write_file("f", b"")
    store.write_attr("f", 0, bytes(ATTR_MAX))
    with pytest.raises(StorageError) as exc:
        store.write_attr("f", 0, bytes(ATTR_MAX + 1))
    assert exc.value.code == ERR_NOSPC


def test_rename_moves_content_and_attributes(store):
    store.write_file("old", b"content")
    store.write_attr("old", 2, b"\x09")
    store.write_file("new", b"other")
    store.rename("old", "new")
    assert "old" not in store
    assert store.read_file("new") == b"content"
    assert store.read_attr("new", 2) == b"\x09"


def test_rename_missing_raises(store):
    with pytest.raises(StorageError) as exc:
        store.rename("missing", "x")
    assert exc.value.code == ERR_NOENT