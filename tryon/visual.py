"""Visualization & still-photo helpers.

- draw_debug: draw the skin-region box, anchor dots and a NO_FACE flag on a BGR frame
- composite_photo: run estimate -> project -> render on one still image
"""
from __future__ import annotations
from typing import Optional, Tuple

import cv2
import numpy as np

from tryon.anchors import project
from tryon.assets import capture_filename
from tryon.config import Settings
from tryon.errors import NoFaceDetected
from tryon.models import AnchorSet, CaptureResult, ProductAsset, VideoFrame
from tryon.overlay import OverlayRenderer, OverlaySurface, flatten
from tryon.skin import SkinRegionEstimator


def draw_debug(frame: np.ndarray,
               anchors: Optional[AnchorSet] = None,
               flag: Optional[str] = None,
               color: Tuple[int, int, int] = (0, 255, 0)) -> np.ndarray:
    """Draw the face box and anchor points.

    Args:
        frame: BGR image in natural (un-mirrored) orientation
        anchors: projected anchors, or None when there is no detection
        flag: optional flag string (e.g., "NO_FACE")
        color: BGR color for the box

    Returns:
        Annotated copy of the frame
    """
    out = frame.copy()
    h, w = out.shape[:2]

    if flag == "NO_FACE":
        cv2.putText(out, "NO_FACE", (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 1.0, (0, 0, 255), 2, cv2.LINE_AA)
    if anchors is None:
        return out

    reg = anchors.region
    x0 = max(0, min(int(reg.x), w - 1)); y0 = max(0, min(int(reg.y), h - 1))
    x1 = max(0, min(int(reg.x + reg.width), w - 1)); y1 = max(0, min(int(reg.y + reg.height), h - 1))
    cv2.rectangle(out, (x0, y0), (x1, y1), color, 2)
    cv2.putText(out, f"{reg.confidence:.2f}", (x0, max(0, y0 - 10)),
                cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2, cv2.LINE_AA)

    for name, pt in anchors:
        if name == "region" or pt is None:
            continue
        cv2.circle(out, (int(pt.x), int(pt.y)), 3, (0, 200, 255), -1, cv2.LINE_AA)
    return out


def composite_photo(photo: np.ndarray,
                    asset: ProductAsset,
                    settings: Settings | None = None) -> CaptureResult:
    """Try a product on a still BGR photo.

    Raises NoFaceDetected when the estimator finds no usable region; there is
    no previous frame to fall back on here.
    """
    s = settings or Settings()
    frame = VideoFrame.from_bgr(photo)
    region = SkinRegionEstimator(s).estimate(frame)
    if region is None:
        raise NoFaceDetected("no face-like skin region found in photo")

    surface = OverlaySurface(frame.width, frame.height)
    OverlayRenderer(s).render(surface, project(region), asset)
    image = flatten(frame.pixels, surface.pixels)
    return CaptureResult(image=image, filename=capture_filename(asset.name),
                         overlay_drawn=not surface.is_blank())
