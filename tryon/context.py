"""
Session-scoped state handed to the renderer and session on every call.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from tryon.hysteresis import ConfidenceEMA, NoFaceHysteresis
from tryon.models import AnchorSet, ProductAsset


@dataclass
class SessionContext:
    asset: Optional[ProductAsset] = None
    asset_error: Optional[str] = None
    last_anchors: Optional[AnchorSet] = None
    rendering_active: bool = False

    ticks: int = 0
    detections: int = 0
    misses: int = 0
    stale_renders: int = 0
    captures: int = 0

    confidence: ConfidenceEMA = field(default_factory=ConfidenceEMA)
    no_face: NoFaceHysteresis = field(default_factory=NoFaceHysteresis)

    def set_asset(self, asset: ProductAsset) -> None:
        self.asset = asset
        self.asset_error = None

    def fail_asset(self, message: str) -> None:
        self.asset = None
        self.asset_error = message
        self.rendering_active = False

    def reset_tracking(self) -> None:
        """Forget detections; stale anchors never carry over between sessions."""
        self.last_anchors = None
        self.rendering_active = False
        self.ticks = self.detections = self.misses = self.stale_renders = 0
        self.confidence.reset()
        self.no_face.step("CLEAR")
