"""Framing of control stream messages over TCP and ENet."""

from __future__ import annotations

import struct

_TCP_HEADER = struct.Struct("<HH")  # type, payloadLength
_ENET_V1_HEADER = struct.Struct("<H")  # type


class FramingError(Exception):
    """Raised when a control message cannot be framed or unframed."""


def encode_tcp_packet(packet_type, payload):
    """Frame a message for the TCP control stream."""
    payload = bytes(payload)
    if len(payload) > 0xFFFF:
        raise FramingError(f"payload of {len(payload)} bytes is too long")
    return _TCP_HEADER.pack(packet_type & 0xFFFF, len(payload)) + payload


def decode_tcp_header(data):
    """Return ``(packet_type, payload_length)`` from a TCP message header."""
    data = bytes(data)
    if len(data) < _TCP_HEADER.size:
        raise FramingError(f"runt TCP header of {len(data)} bytes")
    return _TCP_HEADER.unpack_from(data)


def _read_exact(stream, count):
    chunks = []
    remaining = count
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            raise FramingError(f"stream ended with {remaining} of {count} bytes unread")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_tcp_packet(stream):
    """Read one framed message from a binary stream.

    Returns ``(packet_type, payload)``.
    """
    packet_type, length = decode_tcp_header(_read_exact(stream, _TCP_HEADER.size))
    payload = _read_exact(stream, length) if length else b""
    return packet_type, payload


def encode_enet_v1(packet_type, payload):
    """Frame an unencrypted message for the ENet control stream."""
    return _ENET_V1_HEADER.pack(packet_type & 0xFFFF) + bytes(payload)


def decode_enet_v1(data):
    """Return ``(packet_type, payload)`` from an unencrypted ENet message."""
    data = bytes(data)
    if len(data) < _ENET_V1_HEADER.size:
        raise FramingError(f"runt control packet: {len(data)} < {_ENET_V1_HEADER.size}")
    (packet_type,) = _ENET_V1_HEADER.unpack_from(data)
    return packet_type, data[_ENET_V1_HEADER.size:]