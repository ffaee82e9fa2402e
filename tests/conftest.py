import numpy as np
import pytest

from tryon.config import Settings
from tryon.errors import CameraAccessError
from tryon.models import ProductAsset

SKIN_BGR = (140, 172, 224)    # RGB (224, 172, 140)
FRAME_W, FRAME_H = 640, 480
FACE_RECT = (240, 140, 160, 200)  # x, y, w, h -> centre (320, 240)


def make_frame(rect=FACE_RECT, color=SKIN_BGR, size=(FRAME_W, FRAME_H), bg=(0, 0, 0)):
    """BGR frame with an optional skin-coloured rectangle."""
    w, h = size
    frame = np.zeros((h, w, 3), dtype=np.uint8)
    frame[:] = bg
    if rect is not None:
        x, y, rw, rh = rect
        frame[y:y + rh, x:x + rw] = color
    return frame


def make_asset(kind="earrings", w=20, h=40, name="Gold Chandbali"):
    img = np.zeros((h, w, 4), dtype=np.uint8)
    img[..., 0] = 212
    img[..., 1] = 175
    img[..., 2] = 55
    img[..., 3] = 255
    return ProductAsset(name=name, kind=kind, image=img)


class FakeCamera:
    """Camera double: replays frames, counts open/read/release calls."""
    def __init__(self, frames=None, fail=False, ready_after=0, size=(FRAME_W, FRAME_H)):
        self.frames = list(frames) if frames is not None else [make_frame()]
        self.fail = fail
        self.ready_after = ready_after
        self.size = size
        self.opened = False
        self.open_calls = 0
        self.release_calls = 0
        self.reads = 0

    def open(self):
        self.open_calls += 1
        if self.fail:
            raise CameraAccessError("Permission denied")
        self.opened = True

    def read(self):
        if not self.opened or not self.frames:
            return None
        frame = self.frames[min(self.reads, len(self.frames) - 1)]
        self.reads += 1
        return frame

    def dimensions(self):
        if not self.opened or self.reads < self.ready_after:
            return (0, 0)
        return self.size

    def release(self):
        self.release_calls += 1
        self.opened = False


@pytest.fixture
def settings():
    return Settings(
        CAMERA_WIDTH=FRAME_W, CAMERA_HEIGHT=FRAME_H, SAMPLE_STEP=4, MIN_SKIN_SAMPLES=60,
        DETECTION_THRESHOLD=0.3, SKIN_DENSITY=0.15, NO_FACE_HINT_TICKS=3, MIRROR_PREVIEW=True,
    )


@pytest.fixture
def skin_frame():
    return make_frame()


@pytest.fixture
def earring_asset():
    return make_asset()


@pytest.fixture
def fake_camera():
    return FakeCamera()


@pytest.fixture
def product_png(tmp_path):
    """Earring image written to disk as a BGRA PNG."""
    import cv2
    img = np.zeros((40, 20, 4), dtype=np.uint8)
    img[..., :3] = (55, 175, 212)
    img[..., 3] = 255
    path = tmp_path / "earring.png"
    cv2.imwrite(str(path), img)
    return path
