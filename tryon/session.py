# tryon/session.py
"""
Capture session: camera lifecycle, the per-frame loop, and still capture.

States: idle -> requestingCamera -> live -> stopped. Capture is a side effect
of `live`, not a transition. Each tick runs
    camera frame -> SkinRegionEstimator -> project -> OverlayRenderer
under the session lock, so stop() is atomic with respect to a tick: once
stop() returns, no tick will draw and the camera has been released.
"""
from __future__ import annotations
from typing import Callable, List, Optional
import functools
import logging
import threading

import cv2
import numpy as np

from tryon.anchors import project
from tryon.assets import capture_filename, load_product_asset
from tryon.camera import CameraSource, ReadinessLatch
from tryon.config import Settings
from tryon.context import SessionContext
from tryon.errors import AssetLoadError, CameraAccessError, TryOnError
from tryon.hysteresis import ConfidenceEMA, NoFaceHysteresis
from tryon.models import (
    CaptureResult, CompositorStatus, Placement, ProductAsset, ProductInfo, SessionState, SkinRegion, VideoFrame,
)
from tryon.overlay import OverlayRenderer, OverlaySurface, flatten
from tryon.scheduler import Scheduler
from tryon.skin import SkinRegionEstimator

logger = logging.getLogger(__name__)

AssetLoader = Callable[[ProductInfo, float], ProductAsset]


class CaptureSession:
    """Owns one camera and one overlay surface for the lifetime of a try-on."""

    def __init__(self,
                 camera: CameraSource,
                 scheduler: Scheduler,
                 settings: Settings | None = None,
                 estimator: SkinRegionEstimator | None = None,
                 renderer: OverlayRenderer | None = None):
        self.s = settings or Settings()
        self.camera = camera
        self.scheduler = scheduler
        self.estimator = estimator or SkinRegionEstimator(self.s)
        self.renderer = renderer or OverlayRenderer(self.s)
        self.ctx = SessionContext(
            confidence=ConfidenceEMA(self.s.CONFIDENCE_SMOOTHING),
            no_face=NoFaceHysteresis(self.s.NO_FACE_HINT_TICKS),
        )
        self.surface = OverlaySurface(self.s.CAMERA_WIDTH, self.s.CAMERA_HEIGHT)
        self.readiness = ReadinessLatch(self._video_has_size)

        self.state: SessionState = "idle"
        self.error: Optional[str] = None
        self.product: Optional[ProductInfo] = None
        self.last_region: Optional[SkinRegion] = None
        self.last_placements: List[Placement] = []

        self._lock = threading.RLock()
        self._alive = False
        self._camera_open = False
        self._handle: Optional[int] = None
        self._generation = 0
        self._frame: Optional[VideoFrame] = None
        self._frame_index = 0

    # ---- lifecycle ----
    def start(self) -> None:
        """Acquire the camera and schedule the first tick. Raises CameraAccessError."""
        with self._lock:
            if self.state in ("requestingCamera", "live"):
                return
            self.state = "requestingCamera"
            self.error = None
            logger.debug("[session] requesting camera")
            try:
                self.camera.open()
            except CameraAccessError as e:
                self.state = "idle"
                self.error = str(e)
                logger.warning(f"[session] camera access failed: {e}")
                raise
            except Exception as e:
                self.state = "idle"
                self.error = f"Unable to access camera: {e}"
                logger.exception("[session] camera open raised")
                raise CameraAccessError(self.error) from e

            self._camera_open = True
            self._alive = True
            self._frame = None
            self.last_region = None
            self.last_placements = []
            self.ctx.reset_tracking()
            self.readiness.reset()
            self.readiness.signal("mount")
            self.state = "live"
            self._generation += 1
            self._schedule()
            logger.debug("[session] live")

    def stop(self) -> None:
        """Cancel the pending tick and release the camera. Safe to call repeatedly."""
        with self._lock:
            self._alive = False
            self._generation += 1
            if self._handle is not None:
                self.scheduler.cancel(self._handle)
                self._handle = None
            self._release_camera()
            if self.state != "idle":
                self.state = "stopped"
            self.surface.clear()
            self.ctx.rendering_active = False

    def _release_camera(self) -> None:
        if not self._camera_open:
            return
        self._camera_open = False
        try:
            self.camera.release()
        except Exception:
            logger.exception("[session] camera release failed")
        logger.debug("[session] camera released")

    def __enter__(self) -> "CaptureSession":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()

    # ---- readiness ----
    def _video_has_size(self) -> bool:
        w, h = self.camera.dimensions()
        return w > 0 and h > 0

    def notify_ready(self, event: str) -> bool:
        """External readiness signal (metadata-loaded, can-play, data-loaded, ...)."""
        with self._lock:
            return self.readiness.signal(event)

    # ---- per-frame loop ----
    def _schedule(self) -> None:
        self._handle = self.scheduler.start(functools.partial(self.tick, self._generation))

    def tick(self, generation: Optional[int] = None) -> None:
        """Run one frame. A tick queued by an earlier start() is a no-op."""
        with self._lock:
            if not self._alive or generation not in (None, self._generation):
                return
            generation = self._generation
            self._handle = None
            try:
                self._step()
            except Exception:
                logger.exception(f"[session] tick failed at frame={self._frame_index}")
            finally:
                if self._alive and generation == self._generation:
                    self._schedule()

    def _step(self) -> None:
        raw = self.camera.read()
        if raw is None:
            return
        frame = VideoFrame.from_bgr(raw, index=self._frame_index)
        self._frame_index += 1
        self._frame = frame
        if not self.readiness.signal("frame"):
            return

        self.surface.resize(frame.width, frame.height)
        self.ctx.ticks += 1

        region = self.estimator.estimate(frame)
        if region is not None:
            self.ctx.detections += 1
            self.ctx.confidence.update(region.confidence)
            self.ctx.no_face.step("CLEAR")
            anchors = project(region)
        else:
            self.ctx.misses += 1
            self.ctx.confidence.update(0.0)
            self.ctx.no_face.step("NO_FACE")
            anchors = None
        self.last_region = region

        if not self._alive:
            return
        self.last_placements = self.renderer.render_frame(self.surface, anchors, self.ctx)

    # ---- product ----
    def load_product(self, product: ProductInfo, loader: AssetLoader | None = None) -> bool:
        """Load and swap the product asset. Failure is a status flag, never a teardown."""
        loader = loader or load_product_asset
        self.product = product
        try:
            asset = loader(product, self.s.ASSET_TIMEOUT)
        except AssetLoadError as e:
            logger.warning(f"[session] asset load failed for '{product.name}': {e}")
            with self._lock:
                self.ctx.fail_asset(str(e))
                self.surface.clear()
            return False
        self.set_asset(asset)
        return True

    def clear_product(self) -> None:
        with self._lock:
            self.product = None
            self.ctx.asset = None
            self.ctx.asset_error = None
            self.surface.clear()

    def set_asset(self, asset: ProductAsset) -> None:
        with self._lock:
            self.ctx.set_asset(asset)
        logger.debug(f"[session] asset '{asset.name}' kind={asset.kind}")

    # ---- output ----
    @property
    def frame(self) -> Optional[VideoFrame]:
        return self._frame

    def capture(self) -> CaptureResult:
        """Flatten the current frame (natural orientation) and overlay into one image."""
        with self._lock:
            if self.state != "live":
                raise TryOnError(f"capture needs a live session (state={self.state})")
            if self._frame is None:
                raise TryOnError("no video frame received yet")
            overlay_drawn = not self.surface.is_blank()
            image = flatten(self._frame.pixels, self.surface.pixels)
            self.ctx.captures += 1

        name = self.product.name if self.product else (self.ctx.asset.name if self.ctx.asset else "")
        logger.debug(f"[session] captured {image.shape[1]}x{image.shape[0]} overlay={overlay_drawn}")
        return CaptureResult(image=image, filename=capture_filename(name), overlay_drawn=overlay_drawn)

    def preview(self, mirror: Optional[bool] = None) -> Optional[np.ndarray]:
        """Current composite as BGR for display, mirrored like a selfie view when configured."""
        mirror = self.s.MIRROR_PREVIEW if mirror is None else mirror
        with self._lock:
            if self._frame is None:
                return None
            rgb = flatten(self._frame.pixels, self.surface.pixels)
        bgr = cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
        return cv2.flip(bgr, 1) if mirror else bgr

    def status(self) -> CompositorStatus:
        with self._lock:
            return CompositorStatus(
                camera_ready=self.state == "live" and self.readiness.ready,
                model_ready=bool(self.estimator.rules),
                overlay_active=self.ctx.rendering_active,
                detection_confidence=round(self.ctx.confidence.value, 3),
                state=self.state,
                no_face_hint=self.ctx.no_face.active,
                asset_error=self.ctx.asset_error,
                captures=self.ctx.captures,
            )
