"""A bounded cursor for reading and writing fixed-width integers in a byte buffer."""

from __future__ import annotations

import enum


class ByteOrder(enum.IntEnum):
    """Byte order used for multi-byte integers."""

    LITTLE = 1
    BIG = 2


class ByteBufferError(Exception):
    """Raised when a read or write would cross the end of the buffer."""


class ByteBuffer:
    """A window of ``length`` bytes starting at ``offset`` inside ``data``.

    Reads and writes are all-or-nothing: an operation that does not fit
    raises :class:`ByteBufferError` and leaves the position unchanged.
    """

    def __init__(self, data, offset=0, length=None, byte_order=ByteOrder.LITTLE):
        view = memoryview(data).cast("B")
        if offset < 0 or offset > len(view):
            raise ValueError(f"offset {offset} outside buffer of {len(view)} bytes")
        if length is None:
            length = len(view) - offset
        if length < 0 or offset + length > len(view):
            raise ValueError(f"window of {length} bytes at {offset} exceeds buffer")
        self._view = view[offset:offset + length]
        self.length = length
        self.position = 0
        self.byte_order = ByteOrder(byte_order)

    @property
    def remaining(self):
        """Bytes left between the position and the end of the window."""
        return self.length - self.position

    def _check(self, count):
        if count < 0 or self.position + count > self.length:
            raise ByteBufferError(
                f"need {count} bytes at position {self.position}, "
                f"buffer holds {self.length}"
            )

    @property
    def _endian(self):
        return "big" if self.byte_order is ByteOrder.BIG else "little"

    def advance(self, count):
        """Move the position forward by ``count`` bytes."""
        new_position = self.position + count
        if new_position > self.length or new_position < 0:
            raise ByteBufferError(
                f"cannot advance {count} bytes from position {self.position}"
            )
        self.position = new_position

    def rewind(self):
        """Move the position back to the start of the window."""
        self.position = 0

    def get_bytes(self, length):
        """Read ``length`` raw bytes."""
        self._check(length)
        data = bytes(self._view[self.position:self.position + length])
        self.position += length
        return data

    def _get_int(self, size):
        return int.from_bytes(self.get_bytes(size), self._endian)

    def get8(self):
        """Read an unsigned 8-bit integer."""
        return self._get_int(1)

    def get16(self):
        """Read an unsigned 16-bit integer."""
        return self._get_int(2)

    def get32(self):
        """Read an unsigned 32-bit integer."""
        return self._get_int(4)

    def get64(self):
        """Read an unsigned 64-bit integer."""
        return self._get_int(8)

    def put_bytes(self, data):
        """Write raw bytes."""
        data = bytes(data)
        if self._view.readonly:
            raise ByteBufferError("buffer is read-only")
        self._check(len(data))
        self._view[self.position:self.position + len(data)] = data
        self.position += len(data)

    def _put_int(self, value, size):
        # Values wrap to the field width, as a fixed-width store would.
        mask = (1 << (size * 8)) - 1
        self.put_bytes((value & mask).to_bytes(size, self._endian))

    def put8(self, value):
        """Write an unsigned 8-bit integer."""
        self._put_int(value, 1)

    def put16(self, value):
        """Write an unsigned 16-bit integer."""
        self._put_int(value, 2)

    def put32(self, value):
        """Write an unsigned 32-bit integer."""
        self._put_int(value, 4)

    def put64(self, value):
        """Write an unsigned 64-bit integer."""
        self._put_int(value, 8)