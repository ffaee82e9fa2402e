"""
Camera acquisition and readiness gating.
"""
from __future__ import annotations
from typing import Callable, Optional, Protocol, Tuple
import logging

import cv2
import numpy as np

from tryon.errors import CameraAccessError

logger = logging.getLogger(__name__)

READY_EVENTS = ("mount", "metadata-loaded", "can-play", "data-loaded", "frame")


class CameraSource(Protocol):
    def open(self) -> None:
        ...

    def read(self) -> Optional[np.ndarray]:
        ...

    def dimensions(self) -> Tuple[int, int]:
        ...

    def release(self) -> None:
        ...


class OpenCVCamera:
    """Front camera via cv2.VideoCapture, returning BGR frames."""
    def __init__(self, index: int = 0, width: int = 640, height: int = 480):
        self.index = index
        self.resolution = (int(width), int(height))
        self.cap: Optional[cv2.VideoCapture] = None
        self._last_shape: Tuple[int, int] = (0, 0)

    def open(self) -> None:
        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            cap.release()
            raise CameraAccessError(
                f"Could not open camera index {self.index}. "
                "Check that a camera is connected and camera permission is granted."
            )
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.resolution[0])
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.resolution[1])
        self.cap = cap
        logger.debug(f"[camera] opened index={self.index} target={self.resolution}")

    def read(self) -> Optional[np.ndarray]:
        if self.cap is None:
            return None
        ok, frame = self.cap.read()
        if not ok or frame is None:
            return None
        self._last_shape = (int(frame.shape[1]), int(frame.shape[0]))
        return frame

    def dimensions(self) -> Tuple[int, int]:
        """Natural size reported by the device, or the last frame's size; (0, 0) until known."""
        if self.cap is None:
            return (0, 0)
        w = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
        h = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
        if w > 0 and h > 0:
            return (w, h)
        return self._last_shape

    def release(self) -> None:
        if self.cap is not None:
            if self.cap.isOpened():
                self.cap.release()
            self.cap = None
            logger.debug(f"[camera] released index={self.index}")


class ReadinessLatch:
    """Evaluate a readiness predicate once per external signal and latch the first True.

    Any of the ready events is an equally valid trigger; once latched, the
    predicate is no longer consulted.
    """
    def __init__(self, predicate: Callable[[], bool]):
        self.predicate = predicate
        self.ready = False
        self.trigger: Optional[str] = None

    def signal(self, event: str = "frame") -> bool:
        if self.ready:
            return True
        if event not in READY_EVENTS:
            logger.warning(f"[camera] unknown readiness event '{event}'")
        if self.predicate():
            self.ready = True
            self.trigger = event
            logger.debug(f"[camera] ready on '{event}'")
        return self.ready

    def reset(self) -> None:
        self.ready = False
        self.trigger = None
