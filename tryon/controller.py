"""
User-visible try-on lifecycle: idle -> previewing -> live -> captured.

Thin glue over CaptureSession. Camera failures never escape as exceptions
here; they put the controller back in `previewing` with a readable `error`.
"""
from __future__ import annotations
from typing import Literal, Optional
import logging

from tryon.errors import CameraAccessError, TryOnError
from tryon.models import CaptureResult, ControllerStatus, ProductInfo
from tryon.session import AssetLoader, CaptureSession

logger = logging.getLogger(__name__)

Step = Literal["idle", "previewing", "live", "captured"]


class TryOnController:
    def __init__(self, session: CaptureSession, loader: AssetLoader | None = None):
        self.session = session
        self.loader = loader
        self.step: Step = "idle"
        self.product: Optional[ProductInfo] = None
        self.error: Optional[str] = None
        self.last_capture: Optional[CaptureResult] = None

    def select_product(self, product: ProductInfo) -> bool:
        """Preview a product; while live the overlay asset is swapped in place."""
        self.product = product
        self.error = None
        ok = self.session.load_product(product, loader=self.loader)
        if self.step == "idle":
            self.step = "previewing"
        if not ok:
            self.error = self.session.ctx.asset_error
        return ok

    def start(self) -> bool:
        if self.step == "idle" or self.product is None:
            raise TryOnError("select a product before starting the try-on")
        if self.step in ("live", "captured"):
            return True
        try:
            self.session.start()
        except CameraAccessError as e:
            self.error = f"Unable to access camera. {e}"
            logger.warning(f"[controller] start failed: {e}")
            self.step = "previewing"
            return False
        self.error = None
        self.step = "live"
        logger.info(f"[controller] live with '{self.product.name}'")
        return True

    def capture(self) -> CaptureResult:
        if self.step not in ("live", "captured"):
            raise TryOnError(f"nothing to capture in step '{self.step}'")
        self.last_capture = self.session.capture()
        self.step = "captured"
        return self.last_capture

    def resume(self) -> None:
        if self.step == "captured":
            self.step = "live"

    def stop(self) -> None:
        self.session.stop()
        if self.step != "idle":
            self.step = "previewing"

    def close(self) -> None:
        """Tear everything down; the camera is released even mid-session."""
        self.session.stop()
        self.session.clear_product()
        self.step = "idle"
        self.product = None
        self.last_capture = None

    def status(self) -> ControllerStatus:
        return ControllerStatus(
            step=self.step,
            product=self.product.name if self.product else None,
            error=self.error,
            session=self.session.status(),
        )
