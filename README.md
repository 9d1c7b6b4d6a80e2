# moonlight

Building blocks for the client side of a game-streaming session's control
channel. The package reads and writes wire fields, frames and encrypts
control messages, parses the messages a host sends, tracks frame loss and
reference frame requests, and checks which streaming ports a network lets
through.

## Modules

| Module | Purpose |
| --- | --- |
| `moonlight.bytebuffer` | `ByteBuffer`: bounded reads and writes of 8/16/32/64-bit unsigned fields in a chosen `ByteOrder`. An operation that does not fit raises `ByteBufferError` and leaves the position unchanged. |
| `moonlight.porttest` | `PortFlag` values, `port_flags_from_stage`, `port_flags_from_termination_error`, port and protocol lookup per flag index, `stringify_port_flags`, and `test_client_connectivity` for probing TCP and UDP ports against a test server. |
| `moonlight.control_crypto` | AES-GCM sealing of client messages (`encrypt_control_message`), opening of host messages (`decrypt_control_message`) and the IV scheme (`control_iv`). Failures raise `ControlCryptoError`. |
| `moonlight.packet_types` | `PacketTypes`, the table of packet types, fixed payloads and features for a host generation, chosen with `packet_types_for_version`. |
| `moonlight.control_parsers` | Parsers for rumble, trigger rumble, motion event, LED, adaptive trigger, HDR, termination, clipboard and cursor messages, returning frozen dataclasses such as `Rumble`, `HdrInfo` and `CursorImage`. |
| `moonlight.control_framing` | TCP and unencrypted ENet control message headers: `encode_tcp_packet`, `decode_tcp_header`, `read_tcp_packet`, `encode_enet_v1`, `decode_enet_v1`. Errors raise `FramingError`. |
| `moonlight.frame_loss` | `FrameLossTracker`, which turns frame loss per three-second sampling period into `ConnectionStatus` changes and a loss figure in permille. |
| `moonlight.reference_frames` | `ReferenceFrameQueue`, a bounded thread-safe queue of invalidation and LTR acknowledgement requests, and `coalesce_reference_frame_requests` to merge them. |

## Examples

Reading and writing fields:

```python
from moonlight.bytebuffer import ByteBuffer, ByteOrder

buf = ByteBuffer(bytearray(8), 0, 8, ByteOrder.LITTLE)
buf.put16(4)
buf.put32(0)
buf.rewind()
assert buf.get16() == 4
```

Choosing packet types for a host version:

```python
from moonlight.packet_types import packet_types_for_version

types = packet_types_for_version((7, 1, 431, 0))
assert types.encrypted and types.supports_idr_frame_request
assert types.needs_async_callback(types.rumble_data)
```

Framing a message for the TCP control stream and reading it back:

```python
import io

from moonlight.control_framing import encode_tcp_packet, read_tcp_packet

frame = encode_tcp_packet(0x0305, b"\x00\x00")
assert read_tcp_packet(io.BytesIO(frame)) == (0x0305, b"\x00\x00")
```

The IV for an encrypted control message:

```python
from moonlight.control_crypto import control_iv

iv = control_iv(1, True, False)  # v2 scheme, client originated
assert len(iv) == 12 and iv[:4] == b"\x01\x00\x00\x00"
```

Parsing host messages:

```python
from moonlight.control_parsers import parse_cursor_state, parse_termination

assert parse_termination(b"\x00\x01", saw_frame=True) == 0  # graceful
state = parse_cursor_state(b"\x01\x05")
assert state.visible and state.cursor_id == 5
```

Coalescing reference frame requests:

```python
from moonlight.reference_frames import (
    ReferenceFrameQueue,
    coalesce_reference_frame_requests,
)

queue = ReferenceFrameQueue(20)
queue.invalidate(10, 12)
queue.invalidate(13, 15)
queue.ack_ltr(20)
assert coalesce_reference_frame_requests(queue.drain()) == ((10, 15), [20])
```

Describing and testing ports:

```python
from moonlight.porttest import PortFlag, stringify_port_flags, test_client_connectivity

flags = PortFlag.TCP_47984 | PortFlag.UDP_48000
assert stringify_port_flags(flags, ", ") == "TCP 47984, UDP 48000"

failing = test_client_connectivity("test.example.com", 443, flags)
```

`test_client_connectivity` returns the flags of the ports that failed, 0
when all passed, or `TEST_RESULT_INCONCLUSIVE` when the test could not run.

## What the package does not do

The package holds the pieces of a control channel, not a running session.
It opens no connection to a host and has no ENet transport, no threads that
send loss statistics or IDR frame requests, no payload builders for the
messages a client sends beyond framing and encryption, and no dispatch of
parsed messages to application callbacks. It has no command-line program.

## Requirements

Python 3.10 or later and the `cryptography` distribution.