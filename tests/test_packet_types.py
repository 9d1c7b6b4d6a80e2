import struct

import pytest

from moonlight.packet_types import packet_types_for_version


def test_gen3_table():
    table = packet_types_for_version((3, 0, 0, 0))
    assert table.request_idr_frame == 0x1407
    assert table.start_b == 0x1410
    assert table.loss_stats == 0x140C
    assert table.supports_idr_frame_request is True
    assert table.start_b_payload == struct.pack("<4i", 0, 0, 0, 0xA)
    assert table.frame_stats_length == 64
    assert table.input_data is None


def test_gen4_table():
    table = packet_types_for_version([4, 1, 0, 0])
    assert table.request_idr_frame == 0x0606
    assert table.start_b_payload == b"\x00"
    assert table.request_idr_frame_payload == b"\x00\x00"
    assert table.supports_idr_frame_request is True


def test_gen5_table():
    table = packet_types_for_version((5, 0, 0, 0))
    assert table.start_a == 0x0305
    assert table.input_data == 0x0207
    assert table.supports_idr_frame_request is False
    assert table.frame_stats_length == 80
    assert table.encrypted is False


def test_gen7_encrypted_threshold():
    table = packet_types_for_version((7, 1, 431, 0))
    assert table.encrypted is True
    assert table.request_idr_frame == 0x0302
    assert table.termination == 0x0109
    assert table.ds_adaptive_triggers == 0x5503
    assert table.supports_idr_frame_request is True


def test_gen7_unencrypted():
    table = packet_types_for_version((7, 1, 430, 0))
    assert table.encrypted is False
    assert table.termination == 0x0100
    assert table.rumble_data == 0x010B
    assert table.ds_adaptive_triggers is None
    assert table.periodic_ping is True


def test_periodic_ping_threshold():
    assert packet_types_for_version((7, 1, 414, 0)).periodic_ping is False
    assert packet_types_for_version((7, 1, 415, 0)).periodic_ping is True


def test_needs_async_callback_encrypted():
    table = packet_types_for_version((7, 1, 431, 0))
    for ptype in (0x010B, 0x5500, 0x5501, 0x5502, 0x5503, 0x010E):
        assert table.needs_async_callback(ptype)
    assert not table.needs_async_callback(table.input_data)
    assert not table.needs_async_callback(table.termination)


def test_needs_async_callback_old_generation():
    table = packet_types_for_version((5, 0, 0, 0))
    assert not table.needs_async_callback(0x010B)
    assert not table.needs_async_callback(0xFFFF)
    assert not table.needs_async_callback(-1)


def test_empty_version_rejected():
    with pytest.raises(ValueError):
        packet_types_for_version(())