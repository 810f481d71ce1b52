import pytest

from tokencore.apdu import ApduError, Command, Response, StatusWord


def test_success_response_wire_bytes():
    assert Response(b"ok").to_bytes() == b"ok\x90\x00"


def test_response_to_bytes_ends_with_status():
    resp = Response(b"abc", StatusWord.WRONG_LENGTH)
    raw = resp.to_bytes()
    assert raw[:3] == b"abc"
    assert int.from_bytes(raw[3:], "big") == StatusWord.WRONG_LENGTH
    assert len(raw) == len(resp.data) + 2


def test_empty_response_defaults_to_no_error():
    resp = Response()
    assert resp.sw == StatusWord.NO_ERROR
    assert int.from_bytes(resp.to_bytes(), "big") == StatusWord.NO_ERROR


def test_response_rejects_bad_status():
    with pytest.raises(ValueError):
        Response(b"", 0x10000)


def test_command_lc_follows_data():
    cmd = Command(0x00, 0xA4, 0x04, 0x00, b"\x01\x02\x03")
    assert cmd.lc == 3
    assert cmd.data == b"\x01\x02\x03"


@pytest.mark.parametrize("field", ["cla", "ins", "p1", "p2"])
def test_command_header_must_be_bytes(field):
    args = {"cla": 0, "ins": 0, "p1": 0, "p2": 0}
    args[field] = 256
    with pytest.raises(ValueError):
        Command(**args)


def test_command_le_limit():
    assert Command(0, 0, 0, 0, le=0x10000).le == 0x10000
    with pytest.raises(ValueError):
        Command(0, 0, 0, 0, le=0x10001)


def test_apdu_error_carries_status():
    with pytest.raises(ApduError) as exc:
        raise ApduError(StatusWord.WRONG_DATA)
    assert exc.value.sw == StatusWord.WRONG_DATA
    assert Response(sw=exc.value.sw).to_bytes()[-2:] == int(StatusWord.WRONG_DATA).to_bytes(2, "big")


def test_apdu_error_rejects_out_of_range():
    with pytest.raises(ValueError):
        ApduError(-1)