"""Framing of CTAP messages over 64-byte HID reports."""

import os
import time
from dataclasses import dataclass
from enum import IntEnum

from tokencore.apdu import MAX_LE, ApduError, Command, Response

HID_RPT_SIZE = 64
CID_BROADCAST = 0xFFFFFFFF
TYPE_MASK = 0x80
TYPE_INIT = 0x80
TYPE_CONT = 0x00
INIT_DATA_SIZE = HID_RPT_SIZE - 7
CONT_DATA_SIZE = HID_RPT_SIZE - 5

IF_VERSION = 2
TRANS_TIMEOUT = 800

CTAPHID_PING = TYPE_INIT | 0x01
CTAPHID_MSG = TYPE_INIT | 0x03
CTAPHID_LOCK = TYPE_INIT | 0x04
CTAPHID_INIT = TYPE_INIT | 0x06
CTAPHID_WINK = TYPE_INIT | 0x08
CTAPHID_CBOR = TYPE_INIT | 0x10
CTAPHID_CANCEL = TYPE_INIT | 0x11
CTAPHID_KEEPALIVE = TYPE_INIT | 0x3B
CTAPHID_ERROR = TYPE_INIT | 0x3F

INIT_NONCE_SIZE = 8
VERSION_MAJOR = 1
VERSION_MINOR = 0
VERSION_BUILD = 0

CAPABILITY_WINK = 0x01
CAPABILITY_CBOR = 0x04
CAPABILITY_NMSG = 0x08

KEEPALIVE_STATUS_PROCESSING = 1
KEEPALIVE_STATUS_UPNEEDED = 2

LOOP_SUCCESS = 0x00
LOOP_CANCEL = 0x01

MAX_CTAP_BUFSIZE = 1300

_NEVER = 0xFFFFFFFF


class HidError(IntEnum):
    """Low-level error codes sent in an error frame."""

    NONE = 0x00
    INVALID_CMD = 0x01
    INVALID_PAR = 0x02
    INVALID_LEN = 0x03
    INVALID_SEQ = 0x04
    MSG_TIMEOUT = 0x05
    CHANNEL_BUSY = 0x06
    LOCK_REQUIRED = 0x0A
    INVALID_CID = 0x0B
    OTHER = 0x7F


@dataclass(frozen=True)
class Frame:
    """One HID report: an initial frame when ``command`` is set, else a continuation.

    ``data`` is always padded with zeros to the frame's payload capacity.
    """

    cid: int
    command: "int | None" = None
    length: int = 0
    sequence: int = 0
    data: bytes = b""

    def __post_init__(self):
        if not 0 <= self.cid <= 0xFFFFFFFF:
            raise ValueError(f"channel id out of range: {self.cid:#x}")
        if self.is_init:
            if not TYPE_INIT <= self.command <= 0xFF:
                raise ValueError(f"initial frame command must have bit 7 set: {self.command:#x}")
            if not 0 <= self.length <= 0xFFFF:
                raise ValueError(f"message length out of range: {self.length}")
            capacity = INIT_DATA_SIZE
        else:
            if not 0 <= self.sequence < TYPE_MASK:
                raise ValueError(f"sequence number out of range: {self.sequence}")
            capacity = CONT_DATA_SIZE
        data = bytes(self.data)
        if len(data) > capacity:
            raise ValueError(f"frame payload longer than {capacity} bytes")
        object.__setattr__(self, "data", data.ljust(capacity, b"\0"))

    @property
    def is_init(self):
        """True for an initial frame."""
        return self.command is not None

    @staticmethod
    def parse(data):
        """Decode a 64-byte report."""
        data = bytes(data)
        if len(data) != HID_RPT_SIZE:
            raise ValueError(f"a report is {HID_RPT_SIZE} bytes, got {len(data)}")
        cid = int.from_bytes(data[:4], "little")
        first = data[4]
        if first & TYPE_MASK == TYPE_INIT:
            return Frame(cid, command=first, length=data[5] << 8 | data[6], data=data[7:])
        return Frame(cid, sequence=first, data=data[5:])

    def to_bytes(self):
        """Encode as a 64-byte report."""
        cid = self.cid.to_bytes(4, "little")
        if self.is_init:
            header = bytes([self.command, self.length >> 8, self.length & 0xFF])
        else:
            header = bytes([self.sequence])
        return cid + header + self.data


def _now_ms():
    return int(time.monotonic() * 1000)


class CtapHid:
    """Reassembles CTAPHID messages on one channel and answers them.

    ``send`` receives each 64-byte report to write.  ``process_apdu`` takes a
    :class:`Command` and returns a :class:`Response` or raises
    :class:`ApduError`; ``process_cbor`` takes the request bytes and returns
    the response bytes.
    """

    def __init__(self, send, process_apdu, process_cbor, *, wink=None, tick=None,
                 random_bytes=None):
        self._send = send
        self._process_apdu = process_apdu
        self._process_cbor = process_cbor
        self._wink = wink or (lambda: None)
        self._tick = tick or _now_ms
        self._random = random_bytes or os.urandom

        self._pending = None
        self._busy = False
        self._cid = 0
        self._command = 0
        self._total = 0
        self._seq = 0
        self._expire = 0
        self._message = bytearray()

    @property
    def busy(self):
        """True while a message is being received."""
        return self._busy

    def out_event(self, report):
        """Accept one received report; return False if one is still pending."""
        if self._pending is not None:
            return False
        self._pending = Frame.parse(report)
        return True

    # -- sending -------------------------------------------------------

    def _send_frame(self, frame):
        self._send(frame.to_bytes())

    def _send_response(self, cid, command, data):
        data = bytes(data)
        if len(data) > MAX_CTAP_BUFSIZE:
            raise ValueError(f"response longer than {MAX_CTAP_BUFSIZE} bytes")
        self._send_frame(Frame(cid, command=command, length=len(data),
                               data=data[:INIT_DATA_SIZE]))
        offsets = range(INIT_DATA_SIZE, len(data), CONT_DATA_SIZE)
        for seq, offset in enumerate(offsets):
            self._send_frame(Frame(cid, sequence=seq,
                                   data=data[offset:offset + CONT_DATA_SIZE]))

    def _send_error(self, cid, code):
        self._send_frame(Frame(cid, command=CTAPHID_ERROR, length=1, data=bytes([code])))

    def send_keepalive(self, status):
        """Tell the host the current channel is still working."""
        self._send_frame(Frame(self._cid, command=CTAPHID_KEEPALIVE, length=1,
                               data=bytes([status])))

    # -- receiving -----------------------------------------------------

    def loop(self, wait_for_user=False):
        """Handle the pending report; return LOOP_CANCEL when a cancel arrived."""
        if self._busy and self._tick() > self._expire:
            self._busy = False
            self._send_error(self._cid, HidError.MSG_TIMEOUT)

        frame, self._pending = self._pending, None
        if frame is None:
            return LOOP_SUCCESS
        return self._handle(frame, wait_for_user)

    def _handle(self, frame, wait_for_user):
        if frame.cid == 0 or (frame.cid == CID_BROADCAST and frame.command != CTAPHID_INIT):
            self._send_error(frame.cid, HidError.INVALID_CID)
            return LOOP_SUCCESS
        if self._busy and frame.cid != self._cid:
            self._send_error(frame.cid, HidError.CHANNEL_BUSY)
            return LOOP_SUCCESS

        self._cid = frame.cid

        if frame.is_init:
            if not wait_for_user and self._busy and frame.command != CTAPHID_INIT:
                self._busy = False
                self._send_error(self._cid, HidError.INVALID_SEQ)
                return LOOP_SUCCESS
            if frame.length > MAX_CTAP_BUFSIZE:
                self._send_error(frame.cid, HidError.INVALID_LEN)
                return LOOP_SUCCESS
            self._total = frame.length
            self._message = bytearray(frame.data[:min(self._total, INIT_DATA_SIZE)])
            self._busy = True
            self._command = frame.command
            self._seq = 0
            self._expire = self._tick() + TRANS_TIMEOUT
        else:
            if not self._busy:
                return LOOP_SUCCESS
            expected = self._seq
            self._seq += 1
            if frame.sequence != expected:
                self._busy = False
                self._send_error(self._cid, HidError.INVALID_SEQ)
                return LOOP_SUCCESS
            needed = self._total - len(self._message)
            self._message.extend(frame.data[:min(needed, CONT_DATA_SIZE)])

        if len(self._message) != self._total:
            return LOOP_SUCCESS

        self._expire = _NEVER
        result = self._dispatch(wait_for_user)
        self._busy = False
        return result

    def _dispatch(self, wait_for_user):
        command = self._command
        if command == CTAPHID_MSG:
            if wait_for_user:
                self._send_error(self._cid, HidError.CHANNEL_BUSY)
            elif self._total < 4:
                self._send_error(self._cid, HidError.INVALID_LEN)
            else:
                self._execute_msg()
        elif command == CTAPHID_CBOR:
            if wait_for_user:
                self._send_error(self._cid, HidError.CHANNEL_BUSY)
            elif self._total == 0:
                self._send_error(self._cid, HidError.INVALID_LEN)
            else:
                self._execute_cbor()
        elif command == CTAPHID_INIT:
            if wait_for_user:
                self._send_error(self._cid, HidError.CHANNEL_BUSY)
            else:
                self._execute_init()
        elif command == CTAPHID_PING:
            if wait_for_user:
                self._send_error(self._cid, HidError.CHANNEL_BUSY)
            else:
                self._send_response(self._cid, command, self._message)
        elif command == CTAPHID_WINK:
            if not wait_for_user:
                self._wink()
            self._send_response(self._cid, command, b"")
        elif command == CTAPHID_CANCEL:
            return LOOP_CANCEL
        else:
            self._send_error(self._cid, HidError.INVALID_CMD)
        return LOOP_SUCCESS

    def _execute_init(self):
        nonce = bytes(self._message[:INIT_NONCE_SIZE]).ljust(INIT_NONCE_SIZE, b"\0")
        if self._cid == CID_BROADCAST:
            new_cid = bytes(self._random(4))
        else:
            new_cid = self._cid.to_bytes(4, "little")
        body = nonce + new_cid + bytes(
            [IF_VERSION, VERSION_MAJOR, VERSION_MINOR, VERSION_BUILD, CAPABILITY_CBOR]
        )
        self._send_response(self._cid, self._command, body)

    def _execute_msg(self):
        message = bytes(self._message).ljust(7, b"\0")
        lc = message[5] << 8 | message[6]
        command = Command(message[0], message[1], message[2], message[3],
                          message[7:7 + lc], MAX_LE)
        try:
            response = self._process_apdu(command)
        except ApduError as exc:
            response = Response(b"", exc.sw)
        self._send_response(self._cid, self._command, response.to_bytes())

    def _execute_cbor(self):
        response = bytes(self._process_cbor(bytes(self._message)))
        self._send_response(self._cid, CTAPHID_CBOR, response)