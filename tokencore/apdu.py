"""Smart-card command and response units and their status words."""

from dataclasses import dataclass
from enum import IntEnum

APDU_BUFFER_SIZE = 1340
MAX_LE = 0x10000


class StatusWord(IntEnum):
    """Status words returned at the end of a response."""

    NO_ERROR = 0x9000
    TERMINATED = 0x6285
    PIN_RETRIES = 0x63C0
    WRONG_LENGTH = 0x6700
    UNABLE_TO_PROCESS = 0x6900
    SECURITY_STATUS_NOT_SATISFIED = 0x6982
    AUTHENTICATION_BLOCKED = 0x6983
    DATA_INVALID = 0x6984
    CONDITIONS_NOT_SATISFIED = 0x6985
    COMMAND_NOT_ALLOWED = 0x6986
    WRONG_DATA = 0x6A80
    FILE_NOT_FOUND = 0x6A82
    NOT_ENOUGH_SPACE = 0x6A84
    WRONG_P1P2 = 0x6A86
    REFERENCE_DATA_NOT_FOUND = 0x6A88
    INS_NOT_SUPPORTED = 0x6D00
    CLA_NOT_SUPPORTED = 0x6E00
    CHECKING_ERROR = 0x6F00
    ERROR_WHILE_RECEIVING = 0x6600


class ApduError(Exception):
    """Processing stopped with the status word ``sw``."""

    def __init__(self, sw):
        if not 0 <= sw <= 0xFFFF:
            raise ValueError(f"status word out of range: {sw:#x}")
        super().__init__(f"status {sw:04X}")
        self.sw = sw


def _check_byte(name, value):
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must fit in one byte, got {value}")


@dataclass
class Command:
    """A command unit: header bytes, body and expected response length."""

    cla: int
    ins: int
    p1: int
    p2: int
    data: bytes = b""
    le: int = 0

    def __post_init__(self):
        for name in ("cla", "ins", "p1", "p2"):
            _check_byte(name, getattr(self, name))
        self.data = bytes(self.data)
        if len(self.data) > 0xFFFF:
            raise ValueError("command data longer than 65535 bytes")
        if not 0 <= self.le <= MAX_LE:
            raise ValueError(f"Le must be between 0 and {MAX_LE}")

    @property
    def lc(self):
        """Length of the command body."""
        return len(self.data)


@dataclass
class Response:
    """A response unit: body followed by a two-byte status word."""

    data: bytes = b""
    sw: int = StatusWord.NO_ERROR

    def __post_init__(self):
        self.data = bytes(self.data)
        if len(self.data) > 0xFFFF:
            raise ValueError("response data longer than 65535 bytes")
        if not 0 <= self.sw <= 0xFFFF:
            raise ValueError(f"status word out of range: {self.sw:#x}")

    def to_bytes(self):
        """Encode as body then status word, high byte first."""
        return self.data + int(self.sw).to_bytes(2, "big")