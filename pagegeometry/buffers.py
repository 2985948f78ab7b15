"""
Scoped ownership of intermediate image buffers.

Every grayscale copy, edge map, contour list and transform matrix created
during one detection or rectification call is registered with a
BufferScope. Leaving the scope, by return or by exception, drops all of
them. A process-wide counter of unreleased buffers lets tests check that
repeated calls do not accumulate memory.
"""

import threading
from typing import TypeVar

T = TypeVar("T")

_counter_lock = threading.Lock()
_live_buffers = 0


def live_buffer_count() -> int:
    """Number of buffers acquired through any scope and not yet released."""
    with _counter_lock:
        return _live_buffers


def _adjust(delta: int) -> None:
    global _live_buffers
    with _counter_lock:
        _live_buffers += delta


class BufferScope:
    """Owns intermediate buffers for the duration of a with block.

    Usage:
        with BufferScope() as scope:
            gray = scope.track(cv.cvtColor(src, cv.COLOR_RGB2GRAY))
            edges = scope.track(cv.Canny(gray, 75, 200))
    """

    def __init__(self) -> None:
        self._buffers: list = []
        self._closed = False

    def __enter__(self) -> "BufferScope":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def __len__(self) -> int:
        return len(self._buffers)

    def track(self, buffer: T) -> T:
        """Register a buffer with this scope and return it unchanged."""
        if self._closed:
            raise RuntimeError("Cannot track buffers on a released scope")
        self._buffers.append(buffer)
        _adjust(1)
        return buffer

    def release(self) -> None:
        """Drop every tracked buffer. Safe to call more than once."""
        count = len(self._buffers)
        self._buffers.clear()
        self._closed = True
        if count:
            _adjust(-count)
