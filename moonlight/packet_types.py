"""Control stream packet type tables for each host generation."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Optional

INVALIDATE_REF_FRAMES_LENGTH = 24
LOSS_STATS_LENGTH = 32
PERIODIC_PING_TYPE = 0x0200

_EMPTY_TWO = b"\x00\x00"
_EMPTY_ONE = b"\x00"
_START_B_GEN3 = struct.pack("<4i", 0, 0, 0, 0xA)


@dataclass(frozen=True)
class PacketTypes:
    """Packet types, fixed payloads and features of one host generation.

    A packet type of ``None`` means the generation has no such message.
    The first entry is the "start A" message on generations 5 and 7, and
    the IDR frame request on the others.
    """

    start_a: int
    start_b: int
    invalidate_ref_frames: int
    loss_stats: int
    frame_stats: int
    input_data: Optional[int]
    rumble_data: Optional[int]
    termination: Optional[int]
    hdr_info: Optional[int]
    rumble_trigger_data: Optional[int]
    set_motion_event: Optional[int]
    set_rgb_led: Optional[int]
    ds_adaptive_triggers: Optional[int]
    start_a_payload: bytes
    start_b_payload: bytes
    frame_stats_length: int
    supports_idr_frame_request: bool
    encrypted: bool
    periodic_ping: bool

    @property
    def request_idr_frame(self):
        """Type of the IDR frame request, which shares the first slot with start A."""
        return self.start_a

    @property
    def request_idr_frame_payload(self):
        """Fixed payload sent with the IDR frame request."""
        return self.start_a_payload

    def needs_async_callback(self, packet_type):
        """Whether a received ``packet_type`` is handed to the async callback thread."""
        candidates = (
            self.rumble_data,
            self.rumble_trigger_data,
            self.set_motion_event,
            self.set_rgb_led,
            self.hdr_info,
            self.ds_adaptive_triggers,
        )
        return any(c is not None and c == packet_type for c in candidates)


def _version_at_least(quad, major, minor, patch):
    return tuple(quad[:3]) >= (major, minor, patch)


def packet_types_for_version(version_quad):
    """Return the packet type table for a host with the given app version."""
    quad = tuple(int(v) for v in version_quad)
    if not quad:
        raise ValueError("version quad must not be empty")
    quad = (quad + (0, 0, 0, 0))[:4]

    encrypted = _version_at_least(quad, 7, 1, 431)
    periodic_ping = _version_at_least(quad, 7, 1, 415)
    common = dict(encrypted=encrypted, periodic_ping=periodic_ping)
    no_extensions = dict(
        rumble_trigger_data=None,
        set_motion_event=None,
        set_rgb_led=None,
        ds_adaptive_triggers=None,
    )

    if quad[0] == 3:
        return PacketTypes(
            start_a=0x1407, start_b=0x1410, invalidate_ref_frames=0x1404,
            loss_stats=0x140C, frame_stats=0x1417, input_data=None,
            rumble_data=None, termination=None, hdr_info=None,
            start_a_payload=_EMPTY_TWO, start_b_payload=_START_B_GEN3,
            frame_stats_length=64, supports_idr_frame_request=True,
            **no_extensions, **common,
        )
    if quad[0] == 4:
        return PacketTypes(
            start_a=0x0606, start_b=0x0609, invalidate_ref_frames=0x0604,
            loss_stats=0x060A, frame_stats=0x0611, input_data=None,
            rumble_data=None, termination=None, hdr_info=None,
            start_a_payload=_EMPTY_TWO, start_b_payload=_EMPTY_ONE,
            frame_stats_length=64, supports_idr_frame_request=True,
            **no_extensions, **common,
        )
    if quad[0] == 5:
        return PacketTypes(
            start_a=0x0305, start_b=0x0307, invalidate_ref_frames=0x0301,
            loss_stats=0x0201, frame_stats=0x0204, input_data=0x0207,
            rumble_data=None, termination=None, hdr_info=None,
            start_a_payload=_EMPTY_TWO, start_b_payload=_EMPTY_ONE,
            frame_stats_length=80, supports_idr_frame_request=False,
            **no_extensions, **common,
        )
    if encrypted:
        return PacketTypes(
            start_a=0x0302, start_b=0x0307, invalidate_ref_frames=0x0301,
            loss_stats=0x0201, frame_stats=0x0204, input_data=0x0206,
            rumble_data=0x010B, termination=0x0109, hdr_info=0x010E,
            rumble_trigger_data=0x5500, set_motion_event=0x5501,
            set_rgb_led=0x5502, ds_adaptive_triggers=0x5503,
            start_a_payload=_EMPTY_TWO, start_b_payload=_EMPTY_ONE,
            frame_stats_length=80, supports_idr_frame_request=True,
            **common,
        )
    return PacketTypes(
        start_a=0x0305, start_b=0x0307, invalidate_ref_frames=0x0301,
        loss_stats=0x0201, frame_stats=0x0204, input_data=0x0206,
        rumble_data=0x010B, termination=0x0100, hdr_info=0x010E,
        start_a_payload=_EMPTY_TWO, start_b_payload=_EMPTY_ONE,
        frame_stats_length=80, supports_idr_frame_request=False,
        **no_extensions, **common,
    )