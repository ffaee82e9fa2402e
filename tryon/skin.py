"""
Heuristic skin-region estimator.

Samples a video frame on a coarse grid, classifies each sample as skin-like
with an ordered rule table, and turns the matches into a face-sized bounding
box plus a confidence score. No trained model is involved: the rules are
plain RGB-ratio tests, and a sample passes when ANY rule accepts it.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional, Sequence
import logging

import numpy as np

from tryon.config import Settings
from tryon.models import SkinRegion, VideoFrame

logger = logging.getLogger(__name__)

# (r, g, b) int16 channel arrays -> boolean mask
SkinPredicate = Callable[[np.ndarray, np.ndarray, np.ndarray], np.ndarray]


@dataclass(frozen=True)
class SkinRule:
    name: str
    predicate: SkinPredicate
    weight: float = 1.0


def _light_tones(r, g, b):
    spread = np.maximum(np.maximum(r, g), b) - np.minimum(np.minimum(r, g), b)
    return (
        (r > 95) & (g > 40) & (b > 20)
        & (r > g) & (r > b)
        & (spread > 15) & (np.abs(r - g) > 15)
    )


def _medium_olive_tones(r, g, b):
    return (
        (r > 80) & (g > 50) & (b > 30)
        & (r >= g) & (g > b)
        & (np.abs(r - g) <= 25) & ((r - b) > 20)
        & (r < 240)
    )


def _dark_tones(r, g, b):
    brightness = (r + g + b) / 3.0
    return (
        (brightness > 35) & (brightness < 110)
        & (r > 45) & (r > b) & (r >= g - 5)
        & ((r - b) > 8)
    )


DEFAULT_RULES: tuple[SkinRule, ...] = (
    SkinRule("light", _light_tones),
    SkinRule("medium_olive", _medium_olive_tones),
    SkinRule("dark", _dark_tones),
)


class SkinRegionEstimator:
    """Estimate a face bounding box from skin-like pixels.

    Returns None when the frame carries too little signal; callers treat
    that as "hold the last good frame", never as an error.
    """

    def __init__(self, settings: Settings | None = None, rules: Sequence[SkinRule] | None = None):
        self.s = settings or Settings()
        self.rules: tuple[SkinRule, ...] = tuple(rules) if rules is not None else DEFAULT_RULES
        if not self.rules:
            raise ValueError("at least one skin rule is required")

    def sample_weights(self, rgb: np.ndarray) -> np.ndarray:
        """Per-sample weight: the largest weight among the rules a sample satisfies (0 = no match)."""
        ch = rgb.astype(np.int16)
        r, g, b = ch[..., 0], ch[..., 1], ch[..., 2]
        weights = np.zeros(r.shape, dtype=np.float32)
        for rule in self.rules:
            if rule.weight <= 0:
                continue
            hit = rule.predicate(r, g, b)
            weights = np.where(hit, np.maximum(weights, np.float32(rule.weight)), weights)
        return weights

    def estimate(self, frame: VideoFrame) -> Optional[SkinRegion]:
        step = self.s.SAMPLE_STEP
        grid = frame.pixels[::step, ::step, :3]
        total = int(grid.shape[0] * grid.shape[1])
        if total == 0:
            return None

        weights = self.sample_weights(grid)
        matched = weights > 0
        n_matched = int(matched.sum())
        if n_matched < self.s.MIN_SKIN_SAMPLES:
            logger.debug(f"[skin] frame={frame.index} matched={n_matched} < {self.s.MIN_SKIN_SAMPLES}; no region")
            return None

        rows, cols = np.nonzero(matched)
        w = weights[rows, cols]
        # sample coordinates at the centre of each grid cell
        half = (step - 1) / 2.0
        xs = cols.astype(np.float64) * step + half
        ys = rows.astype(np.float64) * step + half

        cx = float(np.average(xs, weights=w))
        cy = float(np.average(ys, weights=w))
        raw_w = float(xs.max() - xs.min()) + step

        # Skin sampling misses hair-covered forehead/chin, so trust the
        # width and impose a canonical face aspect for the height.
        width = raw_w * self.s.FACE_PADDING
        height = width * self.s.FACE_ASPECT

        confidence = float(w.sum()) / (total * self.s.SKIN_DENSITY)
        confidence = min(1.0, max(0.0, confidence))
        if confidence < self.s.DETECTION_THRESHOLD:
            logger.debug(f"[skin] frame={frame.index} confidence={confidence:.3f} below threshold")
            return None

        return SkinRegion(
            x=cx - width / 2.0,
            y=cy - height / 2.0,
            width=width,
            height=height,
            confidence=confidence,
        )
