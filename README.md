# tokencore

The device-side core of a USB security token, as a plain Python library.
It holds no hardware code. You feed it the bytes a host sends, and it
returns the bytes the token would send back.

## What is inside

- `tokencore.crc`: the CRC-32 used by the token's file system, plus small
  32-bit helpers: `crc32`, `npw2`, `ctz`, `popc`, `aligndown`, `alignup`
  and `scmp`.
- `tokencore.storage`: `MemoryStorage`, an in-memory file store. Each file
  has byte contents and numbered byte attributes (0–255). Failures raise
  `StorageError`. Its `code` attribute holds the file-system error number.
- `tokencore.pin`: `Pin`, a PIN kept in a store, with a retry counter and a
  default retry count.
  - A wrong or blocked PIN raises `PinAuthError`. Its `retries` attribute
    holds the retries left.
  - A PIN of the wrong length raises `PinLengthError`.
  - A storage failure raises `PinIOError`.
  - All three are subclasses of `PinError`.
- `tokencore.apdu`: ISO 7816 command and response units (`Command` and
  `Response`), the `StatusWord` values, and `ApduError`, which carries a
  status word.
- `tokencore.ctaphid`: `CtapHid`, the CTAPHID framing layer of a FIDO
  authenticator. The module also has `Frame` for one 64-byte report and
  `HidError` for the error codes.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example: a PIN with retries

```python
from tokencore.storage import MemoryStorage
from tokencore.pin import Pin, PinAuthError

store = MemoryStorage()
pin = Pin(store, "user-pin", min_length=6, max_length=64)
pin.create(b"secret", max_retries=3)

try:
    pin.verify(b"placeholder")
except PinAuthError as exc:
    print("wrong PIN, retries left:", exc.retries)   # 2

pin.verify(b"secret")       # a match resets the counter to 3
print(pin.retries())        # 3
print(pin.is_validated)     # True
```

## Example: CTAPHID

`CtapHid` takes three callables:

- `send` receives each 64-byte report to write.
- `process_apdu` takes a `Command` and returns a `Response`. It may raise
  `ApduError` instead; the status word then becomes the reply.
- `process_cbor` takes the request bytes and returns the response bytes.

The following keyword arguments are optional:

- `wink`: a callable.
- `tick`: a millisecond clock. The default is based on `time.monotonic`.
- `random_bytes`: used to assign channel ids. The default is `os.urandom`.

Hand each received report to `out_event`, then call `loop`.

```python
from tokencore.apdu import Response
from tokencore.ctaphid import CTAPHID_PING, CtapHid, Frame

sent = []
hid = CtapHid(
    sent.append,
    process_apdu=lambda command: Response(b"", 0x9000),
    process_cbor=lambda request: b"\x00",
)

hid.out_event(Frame(1, command=CTAPHID_PING, length=5, data=b"hello").to_bytes())
hid.loop()

reply = Frame.parse(sent[0])
print(reply.length, reply.data[:5])   # 5 b'hello'
```

`loop` returns `LOOP_CANCEL` when a cancel message arrived, and
`LOOP_SUCCESS` otherwise. Pass `wait_for_user=True` while the token waits
for a touch. In that state, messages other than wink and cancel are refused
with `HidError.CHANNEL_BUSY`. `send_keepalive(status)` tells the host that
the current channel is still working.

## Example: checking a CRC

```python
from tokencore.crc import crc32

checksum = crc32(0xFFFFFFFF, b"hello")
```

`crc32` applies no initial value or final XOR of its own. The caller
chooses them.

## What this package does not do

- It does not talk to USB. There is no smart-card reader interface and there
  are no USB descriptors. `CtapHid` only produces and consumes report bytes.
- It does not implement any applet. Answering APDUs and CBOR requests is up
  to the callables you pass to `CtapHid`.
- It does not persist anything. `MemoryStorage` keeps its files in memory
  only, so they are gone when the process ends.