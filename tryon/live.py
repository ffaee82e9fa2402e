# tryon/live.py
"""
Live (real-time) try-on window.

Opens the webcam, runs the capture session with the window's own refresh
(cv2.waitKey) driving frames through a ManualScheduler, and shows the
mirrored composite with a small status HUD.

Keys: c = capture JPEG to out_dir, d = toggle debug anchors, q = quit.
"""
from __future__ import annotations

import logging
import os
from typing import List, Optional

import cv2
import numpy as np

from tryon.anchors import project
from tryon.camera import OpenCVCamera
from tryon.config import Settings
from tryon.controller import TryOnController
from tryon.errors import CameraAccessError
from tryon.models import CompositorStatus, ProductInfo
from tryon.scheduler import ManualScheduler
from tryon.session import AssetLoader, CaptureSession
from tryon.visual import draw_debug

logger = logging.getLogger(__name__)

WINDOW = "Virtual Try-On (q to quit)"


def _hud_lines(st: CompositorStatus) -> List[str]:
    if not st.camera_ready:
        lines = ["Initializing camera..."]
    elif st.asset_error:
        lines = ["Product image unavailable"]
    elif st.no_face_hint:
        lines = ["No face detected - face the camera"]
    else:
        lines = ["Move your head to see the jewelry!"]
    if st.overlay_active:
        lines.append(f"AR active  conf={st.detection_confidence:.2f}")
    return lines


def _draw_hud(view: np.ndarray, st: CompositorStatus) -> np.ndarray:
    y = 25
    for line in _hud_lines(st):
        cv2.putText(view, line, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2, cv2.LINE_AA)
        y += 25
    return view


def run_live_tryon(settings: Settings,
                   product: ProductInfo,
                   camera_index: Optional[int] = None,
                   debug: bool = False,
                   out_dir: str = "output",
                   loader: AssetLoader | None = None) -> List[str]:
    """Run the preview window until 'q'. Returns paths of saved captures."""
    cam_idx = settings.CAMERA_INDEX if camera_index is None else camera_index
    camera = OpenCVCamera(cam_idx, settings.CAMERA_WIDTH, settings.CAMERA_HEIGHT)
    scheduler = ManualScheduler()
    controller = TryOnController(CaptureSession(camera, scheduler, settings), loader=loader)

    controller.select_product(product)
    if controller.error:
        logger.warning(f"[live] {controller.error}; running without overlay")
    if not controller.start():
        raise CameraAccessError(controller.error or f"Could not open camera index {cam_idx}")

    session = controller.session
    saved: List[str] = []
    try:
        while True:
            scheduler.run_frame()
            view = session.preview(mirror=False)
            if view is not None:
                st = session.status()
                if debug:
                    anchors = project(session.last_region) if session.last_region else None
                    view = draw_debug(view, anchors, "NO_FACE" if st.no_face_hint else None)
                if settings.MIRROR_PREVIEW:
                    view = cv2.flip(view, 1)
                cv2.imshow(WINDOW, _draw_hud(view, st))

            key = cv2.waitKey(1) & 0xFF
            if key == ord("q"):
                break
            if key == ord("d"):
                debug = not debug
            elif key == ord("c") and session.frame is not None:
                result = controller.capture()
                os.makedirs(out_dir, exist_ok=True)
                path = os.path.join(out_dir, result.filename)
                with open(path, "wb") as f:
                    f.write(result.to_jpeg(settings.JPEG_QUALITY))
                saved.append(path)
                logger.info(f"[live] capture saved -> {path}")
                controller.resume()
    finally:
        controller.close()
        cv2.destroyAllWindows()
    return saved
