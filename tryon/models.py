"""
Pydantic data models for compositor values and API IO.
"""
from __future__ import annotations
from typing import Literal, Optional
import time

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

ProductKind = Literal["earrings", "necklace", "ring"]
SessionState = Literal["idle", "requestingCamera", "live", "stopped"]


class VideoFrame(BaseModel):
    """Immutable RGBA pixel buffer sampled from the live stream."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    pixels: np.ndarray
    index: int = 0
    timestamp: float = Field(default_factory=time.time)

    @field_validator("pixels")
    @classmethod
    def _rgba_readonly(cls, v: np.ndarray) -> np.ndarray:
        if v.ndim != 3 or v.shape[2] != 4:
            raise ValueError(f"expected HxWx4 RGBA buffer, got shape {v.shape}")
        # private copy: the caller keeps ownership of its buffer
        v = np.array(v, dtype=np.uint8, copy=True, order="C")
        v.flags.writeable = False
        return v

    @classmethod
    def from_bgr(cls, frame: np.ndarray, index: int = 0) -> "VideoFrame":
        import cv2
        if frame.ndim == 2:
            rgba = cv2.cvtColor(frame, cv2.COLOR_GRAY2RGBA)
        elif frame.shape[2] == 4:
            rgba = cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA)
        else:
            rgba = cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
        return cls(pixels=rgba, index=index)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


class SkinRegion(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float
    confidence: float = Field(ge=0.0, le=1.0)

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2.0

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2.0


class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class AnchorSet(BaseModel):
    """Named anatomical points projected from one SkinRegion."""
    model_config = ConfigDict(frozen=True)

    region: SkinRegion
    left_ear: Point
    right_ear: Point
    nose: Point
    chin: Point
    forehead: Point
    left_cheek: Point
    right_cheek: Point
    left_temple: Optional[Point] = None
    right_temple: Optional[Point] = None
    left_eye: Optional[Point] = None
    right_eye: Optional[Point] = None


class ProductInfo(BaseModel):
    """Catalog record; the compositor only reads these fields."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    category: str = ""
    image_url: str = Field("", alias="imageUrl")


class ProductAsset(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    kind: ProductKind
    image: np.ndarray  # RGBA

    @property
    def natural_width(self) -> int:
        return int(self.image.shape[1])

    @property
    def natural_height(self) -> int:
        return int(self.image.shape[0])


class Placement(BaseModel):
    """One overlay rectangle as drawn on the surface (top-left origin)."""
    x: float
    y: float
    width: int
    height: int
    mirrored: bool = False

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2.0


class CaptureResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    image: np.ndarray  # RGB, natural (un-mirrored) orientation
    filename: str
    overlay_drawn: bool = False

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    def to_jpeg(self, quality: int = 92) -> bytes:
        import cv2
        bgr = cv2.cvtColor(self.image, cv2.COLOR_RGB2BGR)
        ok, buf = cv2.imencode(".jpg", bgr, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
        if not ok:
            raise RuntimeError("JPEG encoding failed")
        return buf.tobytes()


class CompositorStatus(BaseModel):
    camera_ready: bool = False
    model_ready: bool = False
    overlay_active: bool = False
    detection_confidence: float = 0.0
    state: SessionState = "idle"
    no_face_hint: bool = False
    asset_error: Optional[str] = None
    captures: int = 0


class ControllerStatus(BaseModel):
    step: Literal["idle", "previewing", "live", "captured"]
    product: Optional[str] = None
    error: Optional[str] = None
    session: CompositorStatus = Field(default_factory=CompositorStatus)
