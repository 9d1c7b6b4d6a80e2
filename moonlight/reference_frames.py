"""Queue of reference frame invalidations and long-term reference acknowledgements."""

from __future__ import annotations

import collections
import threading
from dataclasses import dataclass

_U32 = 0xFFFFFFFF


@dataclass(frozen=True)
class ReferenceFrameRequest:
    """Either an invalidation of a frame range or an LTR frame acknowledgement."""

    start_frame: int
    end_frame: int
    invalidate: bool


class ReferenceFrameQueue:
    """A bounded, thread-safe queue of reference frame control requests.

    When the queue is full a request is refused and the queue is flushed:
    the caller then needs a full IDR frame instead.
    """

    def __init__(self, bound=20):
        if bound <= 0:
            raise ValueError(f"bound must be positive, got {bound}")
        self.bound = bound
        self._items = collections.deque()
        self._lock = threading.Lock()

    def _offer(self, request):
        with self._lock:
            if len(self._items) >= self.bound:
                self._items.clear()
                return False
            self._items.append(request)
            return True

    def invalidate(self, start_frame, end_frame):
        """Queue an invalidation of ``start_frame`` to ``end_frame``.

        Returns False if the queue was full and an IDR frame is needed.
        """
        if start_frame > end_frame:
            raise ValueError(f"start frame {start_frame} is after end frame {end_frame}")
        return self._offer(
            ReferenceFrameRequest(start_frame & _U32, end_frame & _U32, True)
        )

    def ack_ltr(self, frame_index):
        """Queue an acknowledgement of long-term reference frame ``frame_index``.

        Returns False if the queue was full and an IDR frame is needed.
        """
        return self._offer(ReferenceFrameRequest(frame_index & _U32, 0, False))

    def flush(self):
        """Drop every queued request and return them."""
        with self._lock:
            dropped = list(self._items)
            self._items.clear()
            return dropped

    def drain(self):
        """Remove and return every queued request, oldest first."""
        return self.flush()

    def __len__(self):
        with self._lock:
            return len(self._items)


def coalesce_reference_frame_requests(requests):
    """Merge queued requests into one invalidation range and a list of LTR acks.

    Returns ``(invalidate_range, ltr_acks)``, where ``invalidate_range`` is
    ``(start_frame, end_frame)`` spanning from the first invalidation's start
    to the last invalidation's end, or ``None`` if there was no invalidation.
    """
    invalidate_range = None
    acks = []
    for request in requests:
        if request.invalidate:
            if invalidate_range is None:
                invalidate_range = (request.start_frame, request.end_frame)
            else:
                invalidate_range = (invalidate_range[0], request.end_frame)
        else:
            acks.append(request.start_frame)
    return invalidate_range, acks