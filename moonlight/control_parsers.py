"""Parsers for messages the host sends on the control stream."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .bytebuffer import ByteBuffer, ByteBufferError, ByteOrder

log = logging.getLogger(__name__)

DS_EFFECT_PAYLOAD_SIZE = 10
MAX_CLIPBOARD_TEXT = 65536

ERROR_GRACEFUL_TERMINATION = 0
ERROR_UNEXPECTED_EARLY_TERMINATION = -102
ERROR_PROTECTED_CONTENT = -103
ERROR_FRAME_CONVERSION = -104

_HRESULT_ENCODER_CONVERT_INPUT_FRAME_FAILED = 0x800E9403
_HRESULT_VFP_PROTECTED_CONTENT = 0x800E9302
_HRESULT_TERMINATED_CLOSED = 0x80030023
_REASON_TERMINATED_INTENDED = 0x0100


@dataclass(frozen=True)
class Rumble:
    """Rumble motor levels for one controller."""

    controller_number: int
    low_freq_rumble: int
    high_freq_rumble: int


@dataclass(frozen=True)
class RumbleTriggers:
    """Trigger motor levels for one controller."""

    controller_number: int
    left_trigger_motor: int
    right_trigger_motor: int


@dataclass(frozen=True)
class MotionEventState:
    """Requested motion sensor reporting for one controller."""

    controller_number: int
    motion_type: int
    report_rate_hz: int


@dataclass(frozen=True)
class ControllerLed:
    """Requested LED colour for one controller."""

    controller_number: int
    r: int
    g: int
    b: int


@dataclass(frozen=True)
class AdaptiveTriggers:
    """Adaptive trigger effect for one controller; payloads are opaque."""

    controller_number: int
    event_flags: int
    type_left: int
    type_right: int
    left: bytes
    right: bytes


@dataclass(frozen=True)
class HdrMetadata:
    """Mastering display and content light level metadata."""

    display_primaries: Tuple[Tuple[int, int], Tuple[int, int], Tuple[int, int]]
    white_point: Tuple[int, int]
    max_display_luminance: int
    min_display_luminance: int
    max_content_light_level: int
    max_frame_average_light_level: int
    max_full_frame_luminance: int


@dataclass(frozen=True)
class HdrInfo:
    """HDR mode change; metadata is present only when the host sends it."""

    enabled: bool
    metadata: Optional[HdrMetadata] = None


@dataclass(frozen=True)
class CursorImage:
    """Cursor bitmap announced by the host."""

    cursor_id: int
    width: int
    height: int
    hot_x: int
    hot_y: int
    cursor_type: int
    data: bytes


@dataclass(frozen=True)
class CursorState:
    """Cursor visibility and the active cursor."""

    visible: bool
    cursor_id: int


class _LenientReader:
    """Reads fields, yielding zero for any field that does not fit."""

    def __init__(self, payload, byte_order=ByteOrder.LITTLE):
        payload = bytes(payload)
        self._buf = ByteBuffer(payload, 0, len(payload), byte_order)

    def _read(self, getter, default=0):
        try:
            return getter()
        except ByteBufferError:
            return default

    def skip(self, count):
        try:
            self._buf.advance(count)
        except ByteBufferError:
            pass

    def u8(self):
        return self._read(self._buf.get8)

    def u16(self):
        return self._read(self._buf.get16)

    def u32(self):
        return self._read(self._buf.get32)

    def raw(self, length):
        return self._read(lambda: self._buf.get_bytes(length), bytes(length))


def parse_async_callback(packet_types, packet_type, payload):
    """Decode a message handled on the async callback thread.

    ``payload`` is the message body after the type header. Fields that the
    body is too short to hold read as zero.
    """
    reader = _LenientReader(payload)
    if packet_type == packet_types.rumble_data:
        reader.skip(4)
        return Rumble(reader.u16(), reader.u16(), reader.u16())
    if packet_type == packet_types.rumble_trigger_data:
        return RumbleTriggers(reader.u16(), reader.u16(), reader.u16())
    if packet_type == packet_types.set_motion_event:
        controller = reader.u16()
        rate = reader.u16()
        return MotionEventState(controller, reader.u8(), rate)
    if packet_type == packet_types.set_rgb_led:
        return ControllerLed(reader.u16(), reader.u8(), reader.u8(), reader.u8())
    if packet_type == packet_types.hdr_info:
        return parse_hdr_info(payload, False)
    if packet_type == packet_types.ds_adaptive_triggers:
        return AdaptiveTriggers(
            reader.u16(),
            reader.u8(),
            reader.u8(),
            reader.u8(),
            reader.raw(DS_EFFECT_PAYLOAD_SIZE),
            reader.raw(DS_EFFECT_PAYLOAD_SIZE),
        )
    raise ValueError(f"packet type {packet_type:#06x} has no async callback")


def parse_hdr_info(payload, is_sunshine):
    """Decode an HDR mode message; Sunshine hosts also send metadata."""
    reader = _LenientReader(payload)
    enabled = reader.u8() != 0
    metadata = None
    if is_sunshine:
        primaries = tuple((reader.u16(), reader.u16()) for _ in range(3))
        metadata = HdrMetadata(
            display_primaries=primaries,
            white_point=(reader.u16(), reader.u16()),
            max_display_luminance=reader.u16(),
            min_display_luminance=reader.u16(),
            max_content_light_level=reader.u16(),
            max_frame_average_light_level=reader.u16(),
            max_full_frame_luminance=reader.u16(),
        )
    return HdrInfo(enabled, metadata)


def _to_signed32(value):
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def parse_termination(payload, saw_frame):
    """Return the error code to report for a termination message.

    ``saw_frame`` tells whether any video frame was seen; a clean shutdown
    before the first frame is reported as an unexpected early termination.
    """
    clean = ERROR_GRACEFUL_TERMINATION if saw_frame else ERROR_UNEXPECTED_EARLY_TERMINATION
    if len(payload) >= 4:
        code = _LenientReader(payload, ByteOrder.BIG).u32()
        log.info("Server notified termination reason: 0x%08x", code)
        if code == _HRESULT_ENCODER_CONVERT_INPUT_FRAME_FAILED:
            return ERROR_FRAME_CONVERSION
        if code == _HRESULT_VFP_PROTECTED_CONTENT:
            return ERROR_PROTECTED_CONTENT
        if code == _HRESULT_TERMINATED_CLOSED:
            return clean
        return _to_signed32(code)

    reason = _LenientReader(payload).u16()
    log.info("Server notified termination reason: 0x%04x", reason)
    if reason == _REASON_TERMINATED_INTENDED:
        return clean
    return reason


def parse_clipboard(payload):
    """Return the text bytes of a clipboard message, or None if it carries none."""
    payload = bytes(payload)
    if len(payload) < 6:
        return None
    fmt = int.from_bytes(payload[4:6], "little")
    text = payload[6:]
    if fmt == 0 and 0 < len(text) <= MAX_CLIPBOARD_TEXT:
        return text
    return None


def parse_cursor_image(payload):
    """Decode a cursor image message, or return None if it is invalid."""
    payload = bytes(payload)
    if len(payload) < 8:
        return None
    cursor_id, width, height, hot_x, hot_y, cursor_type = payload[:6]
    data_len = int.from_bytes(payload[6:8], "little")
    if cursor_id == 0 or width == 0 or height == 0 or len(payload) < 8 + data_len:
        log.warning(
            "Cursor image: invalid fields (id=%u w=%u h=%u dataLen=%u pktLen=%d)",
            cursor_id, width, height, data_len, len(payload) + 2,
        )
        return None
    return CursorImage(
        cursor_id, width, height, hot_x, hot_y, cursor_type, payload[8:8 + data_len]
    )


def parse_cursor_state(payload):
    """Decode a cursor state message, or return None if it is too short."""
    payload = bytes(payload)
    if len(payload) < 2:
        return None
    return CursorState(payload[0] != 0, payload[1])


def parse_cursor_ref(payload):
    """Return the referenced cursor id, or None if absent or zero."""
    payload = bytes(payload)
    if len(payload) < 1 or payload[0] == 0:
        return None
    return payload[0]