"""
Lazy, initialize-once handle to the OpenCV runtime.

The first caller of ensure() loads OpenCV; callers arriving while that
load is in flight wait on the same future instead of starting another.
A successful load is cached for the life of the process. A failed load
is not cached, so a later call may retry.
"""

import concurrent.futures
import logging
import threading
from types import ModuleType
from typing import Callable

from .errors import VisionRuntimeError

logger = logging.getLogger(__name__)

# Primitives the detection and rectification stages call
REQUIRED_PRIMITIVES = (
    "cvtColor",
    "GaussianBlur",
    "Canny",
    "findContours",
    "arcLength",
    "approxPolyDP",
    "isContourConvex",
    "contourArea",
    "getPerspectiveTransform",
    "warpPerspective",
    "resize",
)


def import_opencv() -> ModuleType:
    """Import cv2, translating import failures into VisionRuntimeError."""
    try:
        import cv2
    except ImportError as e:
        raise VisionRuntimeError(
            f"OpenCV is not available ({e}). Install opencv-python-headless."
        ) from e
    return cv2


class VisionRuntime:
    """Process-wide handle to the vision library.

    Usage:
        runtime = default_runtime()
        cv = runtime.ensure()
        edges = cv.Canny(gray, 75, 200)
    """

    def __init__(self, loader: Callable[[], ModuleType] = import_opencv) -> None:
        self._loader = loader
        self._lock = threading.Lock()
        self._future: concurrent.futures.Future | None = None

    @property
    def is_ready(self) -> bool:
        """True once the runtime has loaded successfully."""
        future = self._future
        return future is not None and future.done() and future.exception() is None

    def ensure(self, timeout: float | None = None) -> ModuleType:
        """Return the loaded vision module, loading it on first use.

        Args:
            timeout: Seconds to wait for an in-flight load started by
                another thread (None waits indefinitely)

        Raises:
            VisionRuntimeError: If loading fails or the wait times out
        """
        with self._lock:
            future = self._future
            is_loader = future is None
            if is_loader:
                future = concurrent.futures.Future()
                self._future = future

        if is_loader:
            self._load(future)

        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            raise VisionRuntimeError(f"Timed out after {timeout}s waiting for OpenCV to load") from None

    def _load(self, future: concurrent.futures.Future) -> None:
        logger.debug("Loading vision runtime")
        try:
            module = self._loader()
        except VisionRuntimeError as e:
            self._fail(future, e)
            return
        except Exception as e:
            error = VisionRuntimeError(f"Vision runtime failed to initialize: {e}")
            error.__cause__ = e
            self._fail(future, error)
            return
        except BaseException as e:
            # Interrupted load: waiters must not block on it and the next call retries
            self._fail(future, VisionRuntimeError(f"Vision runtime load was interrupted: {e!r}"))
            raise

        missing = [name for name in REQUIRED_PRIMITIVES if not hasattr(module, name)]
        if missing:
            self._fail(future, VisionRuntimeError(f"Vision runtime lacks required primitives: {missing}"))
            return

        version = getattr(module, "__version__", "unknown")
        logger.info(f"Vision runtime ready (OpenCV {version})")
        future.set_result(module)

    def _fail(self, future: concurrent.futures.Future, error: VisionRuntimeError) -> None:
        logger.error(f"Vision runtime unavailable: {error}")
        # Forget the failed attempt so the next caller retries
        with self._lock:
            self._future = None
        future.set_exception(error)


_default_runtime = VisionRuntime()


def default_runtime() -> VisionRuntime:
    """The shared runtime handle used when callers do not supply one."""
    return _default_runtime
