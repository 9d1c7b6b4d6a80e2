import struct

import pytest

from moonlight.control_parsers import (
    DS_EFFECT_PAYLOAD_SIZE,
    ERROR_FRAME_CONVERSION,
    ERROR_GRACEFUL_TERMINATION,
    ERROR_PROTECTED_CONTENT,
    ERROR_UNEXPECTED_EARLY_TERMINATION,
    AdaptiveTriggers,
    ControllerLed,
    CursorImage,
    CursorState,
    HdrInfo,
    MotionEventState,
    Rumble,
    RumbleTriggers,
    parse_async_callback,
    parse_clipboard,
    parse_cursor_image,
    parse_cursor_ref,
    parse_cursor_state,
    parse_hdr_info,
    parse_termination,
)
from moonlight.packet_types import packet_types_for_version


@pytest.fixture
def types():
    return packet_types_for_version((7, 1, 431, 0))


def test_rumble_skips_four_bytes(types):
    payload = b"\xff" * 4 + struct.pack("<HHH", 2, 1000, 2000)
    event = parse_async_callback(types, types.rumble_data, payload)
    assert event == Rumble(2, 1000, 2000)


def test_rumble_short_payload_reads_zero(types):
    payload = b"\x00" * 4 + struct.pack("<H", 3)
    event = parse_async_callback(types, types.rumble_data, payload)
    assert event == Rumble(3, 0, 0)


def test_rumble_triggers(types):
    payload = struct.pack("<HHH", 1, 500, 600)
    event = parse_async_callback(types, types.rumble_trigger_data, payload)
    assert event == RumbleTriggers(1, 500, 600)


def test_motion_event(types):
    payload = struct.pack("<HHB", 4, 250, 2)
    event = parse_async_callback(types, types.set_motion_event, payload)
    assert event == MotionEventState(controller_number=4, motion_type=2, report_rate_hz=250)


def test_controller_led(types):
    payload = struct.pack("<HBBB", 1, 10, 20, 30)
    event = parse_async_callback(types, types.set_rgb_led, payload)
    assert event == ControllerLed(1, 10, 20, 30)


def test_adaptive_triggers(types):
    left = bytes(range(DS_EFFECT_PAYLOAD_SIZE))
    right = bytes(range(50, 50 + DS_EFFECT_PAYLOAD_SIZE))
    payload = struct.pack("<HBBB", 2, 0x0C, 5, 6) + left + right
    event = parse_async_callback(types, types.ds_adaptive_triggers, payload)
    assert event == AdaptiveTriggers(2, 0x0C, 5, 6, left, right)


def test_adaptive_triggers_missing_payload_is_zeroed(types):
    payload = struct.pack("<HBBB", 2, 0x04, 5, 6)
    event = parse_async_callback(types, types.ds_adaptive_triggers, payload)
    assert event.left == bytes(DS_EFFECT_PAYLOAD_SIZE)
    assert event.right == bytes(DS_EFFECT_PAYLOAD_SIZE)


def test_async_hdr_message(types):
    event = parse_async_callback(types, types.hdr_info, b"\x01")
    assert event == HdrInfo(True, None)


def test_unknown_async_type_raises(types):
    with pytest.raises(ValueError):
        parse_async_callback(types, types.loss_stats, b"")


def test_hdr_info_without_metadata():
    info = parse_hdr_info(b"\x00", False)
    assert info.enabled is False
    assert info.metadata is None


def test_hdr_info_with_sunshine_metadata():
    values = list(range(100, 113))
    payload = b"\x01" + struct.pack("<13H", *values)
    info = parse_hdr_info(payload, True)
    assert info.enabled is True
    meta = info.metadata
    assert meta.display_primaries == ((100, 101), (102, 103), (104, 105))
    assert meta.white_point == (106, 107)
    assert meta.max_display_luminance == 108
    assert meta.min_display_luminance == 109
    assert meta.max_content_light_level == 110
    assert meta.max_frame_average_light_level == 111
    assert meta.max_full_frame_luminance == 112


def test_termination_short_intended():
    payload = struct.pack("<H", 0x0100)
    assert parse_termination(payload, True) == ERROR_GRACEFUL_TERMINATION
    assert parse_termination(payload, False) == ERROR_UNEXPECTED_EARLY_TERMINATION


def test_termination_short_other_reason_passed_through():
    assert parse_termination(struct.pack("<H", 0x0042), True) == 0x0042


def test_termination_extended_known_codes():
    assert parse_termination(struct.pack(">I", 0x800E9403), True) == ERROR_FRAME_CONVERSION
    assert parse_termination(struct.pack(">I", 0x800E9302), True) == ERROR_PROTECTED_CONTENT
    closed = struct.pack(">I", 0x80030023)
    assert parse_termination(closed, True) == ERROR_GRACEFUL_TERMINATION
    assert parse_termination(closed, False) == ERROR_UNEXPECTED_EARLY_TERMINATION


def test_termination_extended_unknown_code_is_signed():
    result = parse_termination(struct.pack(">I", 0x80004005), True)
    assert result < 0
    assert result & 0xFFFFFFFF == 0x80004005
    assert parse_termination(struct.pack(">I", 0x12345678), True) == 0x12345678


def test_clipboard_text():
    payload = struct.pack("<IH", 7, 0) + b"hello"
    assert parse_clipboard(payload) == b"hello"


def test_clipboard_rejects_other_format_and_empty():
    assert parse_clipboard(struct.pack("<IH", 7, 1) + b"hello") is None
    assert parse_clipboard(struct.pack("<IH", 7, 0)) is None
    assert parse_clipboard(b"\x00\x00") is None


def test_cursor_image():
    pixels = bytes(range(16))
    payload = bytes([3, 2, 2, 1, 1, 0]) + struct.pack("<H", len(pixels)) + pixels
    assert parse_cursor_image(payload) == CursorImage(3, 2, 2, 1, 1, 0, pixels)


def test_cursor_image_invalid():
    assert parse_cursor_image(bytes([0, 2, 2, 1, 1, 0]) + struct.pack("<H", 0)) is None
    assert parse_cursor_image(bytes([3, 2, 2, 1, 1, 0]) + struct.pack("<H", 5) + b"ab") is None
    assert parse_cursor_image(b"\x01\x02") is None


def test_cursor_state_and_ref():
    assert parse_cursor_state(b"\x01\x05") == CursorState(True, 5)
    assert parse_cursor_state(b"\x01") is None
    assert parse_cursor_ref(b"\x09") == 9
    assert parse_cursor_ref(b"\x00") is None
    assert parse_cursor_ref(b"") is None