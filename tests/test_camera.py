import numpy as np
import pytest

import tryon.camera as camera_mod
from tryon.camera import OpenCVCamera, ReadinessLatch
from tryon.errors import CameraAccessError


class DummyCap:
    def __init__(self, opened=True):
        self.opened = opened
        self.released = 0
        self.props = {}
    def isOpened(self): return self.opened and not self.released
    def set(self, prop, value): self.props[prop] = value
    def get(self, prop): return self.props.get(prop, 0)
    def read(self): return True, np.zeros((48, 64, 3), dtype=np.uint8)
    def release(self): self.released += 1


def test_latch_evaluates_once_per_signal_and_latches():
    calls = {"n": 0}
    state = {"ready": False}

    def predicate():
        calls["n"] += 1
        return state["ready"]

    latch = ReadinessLatch(predicate)
    assert latch.signal("mount") is False
    assert latch.signal("metadata-loaded") is False
    state["ready"] = True
    assert latch.signal("can-play") is True
    assert latch.trigger == "can-play"
    # latched: later signals don't consult the predicate again
    assert latch.signal("data-loaded") is True
    assert calls["n"] == 3


def test_open_failure_raises_camera_access_error(monkeypatch):
    monkeypatch.setattr(camera_mod.cv2, "VideoCapture", lambda idx: DummyCap(opened=False))
    with pytest.raises(CameraAccessError):
        OpenCVCamera(3).open()


def test_open_read_release(monkeypatch):
    cap = DummyCap()
    monkeypatch.setattr(camera_mod.cv2, "VideoCapture", lambda idx: cap)
    cam = OpenCVCamera(0, 640, 480)
    assert cam.dimensions() == (0, 0)
    cam.open()
    # device reports the requested size
    assert cam.dimensions() == (640, 480)
    assert cam.read().shape == (48, 64, 3)
    cam.release()
    cam.release()
    assert cap.released == 1
    assert cam.read() is None
