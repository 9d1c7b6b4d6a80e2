"""Tracking of frame loss over sampling periods and connection status changes."""

from __future__ import annotations

import enum
import threading

CONN_IMMEDIATE_POOR_LOSS_RATE = 30
CONN_CONSECUTIVE_POOR_LOSS_RATE = 15
CONN_OKAY_LOSS_RATE = 5
CONN_STATUS_SAMPLE_PERIOD = 3000

_U32 = 0xFFFFFFFF


class ConnectionStatus(enum.IntEnum):
    """Connection quality reported to the client."""

    OKAY = 0
    POOR = 1


class FrameLossTracker:
    """Counts seen and completed frames and reports loss per sampling period.

    ``on_status`` is called with a :class:`ConnectionStatus` when the
    connection quality changes. ``on_frame_loss`` is called at the end of
    each sampling period with the frame loss in permille (0 to 1000).
    Either may be ``None``.
    """

    def __init__(self, on_status=None, on_frame_loss=None):
        self._on_status = on_status
        self._on_frame_loss = on_frame_loss
        self._lock = threading.Lock()
        self.last_good_frame = 0
        self.last_good_frame_recv_time_us = 0
        self.last_seen_frame = 0
        self.status = ConnectionStatus.OKAY
        self.last_interval_loss_percentage = 0
        self._interval_good = 0
        self._interval_total = 0
        self._interval_start_ms = 0
        self._first_frame_ms = 0

    def received_complete_frame(self, frame_index, recv_time_us):
        """Record that ``frame_index`` was fully received at ``recv_time_us``."""
        with self._lock:
            self.last_good_frame = frame_index & _U32
            self.last_good_frame_recv_time_us = recv_time_us
            self._interval_good += 1

    def saw_frame(self, frame_index, now_ms):
        """Record that a packet of ``frame_index`` was seen at ``now_ms``."""
        frame_index &= _U32
        status_change = None
        loss_permille = None
        with self._lock:
            # The first sampling period is ignored to let the network settle.
            if self.last_seen_frame == 0:
                self.last_seen_frame = frame_index
                self._first_frame_ms = now_ms
                return
            if now_ms - self._first_frame_ms < CONN_STATUS_SAMPLE_PERIOD:
                self.last_seen_frame = frame_index
                return

            if now_ms - self._interval_start_ms >= CONN_STATUS_SAMPLE_PERIOD:
                if self._interval_total != 0:
                    loss = 100 - (self._interval_good * 100) // self._interval_total
                    if self.status != ConnectionStatus.POOR and (
                        loss >= CONN_IMMEDIATE_POOR_LOSS_RATE
                        or (
                            loss >= CONN_CONSECUTIVE_POOR_LOSS_RATE
                            and self.last_interval_loss_percentage
                            >= CONN_CONSECUTIVE_POOR_LOSS_RATE
                        )
                    ):
                        self.status = status_change = ConnectionStatus.POOR
                    elif loss <= CONN_OKAY_LOSS_RATE and self.status != ConnectionStatus.OKAY:
                        self.status = status_change = ConnectionStatus.OKAY

                    self.last_interval_loss_percentage = loss
                    loss_permille = min(max(loss * 10, 0), 1000)

                self._interval_start_ms = now_ms
                self._interval_good = 0
                self._interval_total = 0

            self._interval_total += (frame_index - self.last_seen_frame) & _U32
            self.last_seen_frame = frame_index

        if status_change is not None and self._on_status is not None:
            self._on_status(status_change)
        if loss_permille is not None and self._on_frame_loss is not None:
            self._on_frame_loss(loss_permille)