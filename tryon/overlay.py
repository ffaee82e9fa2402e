"""
Overlay rendering onto a transparent RGBA surface.

- OverlaySurface: frame-sized RGBA layer with straight-alpha "over" compositing
- OverlayRenderer.render: type-specific placement for earrings / necklace / ring
- OverlayRenderer.render_frame: per-tick entry point with hold-last-good-frame

Ring placement is a coarse approximation off the right cheek anchor; there is
no hand tracking, so rings are shown near the jaw rather than on a finger.
"""
from __future__ import annotations
from typing import List, Optional

import cv2
import numpy as np

from tryon.config import Settings
from tryon.context import SessionContext
from tryon.models import AnchorSet, Placement, ProductAsset

# Earrings
EARRING_WIDTH = 0.12        # fraction of face-box width
EARRING_MIN_PX = 16         # floor so the overlay never vanishes on far faces
EARRING_DROP = 0.04         # top edge sits this far (x face height) below the ear
# Necklace
NECKLACE_WIDTH = 0.75
NECKLACE_FLATTEN = 0.55
NECKLACE_DROP = 0.20        # below the chin, x face height
# Ring
RING_SIZE = 0.10
RING_MIN_PX = 10
RING_OUT = 0.35             # outward from the right cheek, x face width
RING_DOWN = 0.45            # downward from the right cheek, x face height
# Shadow
SHADOW_OFFSET = (2, 3)
SHADOW_ALPHA = 0.35


class OverlaySurface:
    """Transparent drawing layer sized to the video frame."""

    def __init__(self, width: int, height: int):
        self.pixels = np.zeros((int(height), int(width), 4), dtype=np.uint8)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def resize(self, width: int, height: int) -> None:
        if (width, height) != (self.width, self.height):
            self.pixels = np.zeros((int(height), int(width), 4), dtype=np.uint8)

    def clear(self) -> None:
        self.pixels[...] = 0

    def is_blank(self) -> bool:
        return not bool(self.pixels[..., 3].any())

    def draw_image(self, src: np.ndarray, x: float, y: float, opacity: float = 1.0) -> bool:
        """Composite an RGBA image with its top-left at (x, y). Returns False if fully clipped."""
        h, w = src.shape[:2]
        x0, y0 = int(round(x)), int(round(y))
        dx0, dy0 = max(0, x0), max(0, y0)
        dx1, dy1 = min(self.width, x0 + w), min(self.height, y0 + h)
        if dx1 <= dx0 or dy1 <= dy0:
            return False
        sx0, sy0 = dx0 - x0, dy0 - y0

        s = src[sy0:sy0 + (dy1 - dy0), sx0:sx0 + (dx1 - dx0)].astype(np.float32) / 255.0
        d = self.pixels[dy0:dy1, dx0:dx1].astype(np.float32) / 255.0
        sa = s[..., 3:4] * float(opacity)
        da = d[..., 3:4]
        out_a = sa + da * (1.0 - sa)
        out_rgb = (s[..., :3] * sa + d[..., :3] * da * (1.0 - sa)) / np.maximum(out_a, 1e-6)
        out = np.concatenate([out_rgb, out_a], axis=-1)
        self.pixels[dy0:dy1, dx0:dx1] = np.clip(out * 255.0 + 0.5, 0, 255).astype(np.uint8)
        return True


def _shadow_of(sprite: np.ndarray) -> np.ndarray:
    sigma = max(1.0, sprite.shape[1] * 0.04)
    alpha = cv2.GaussianBlur(sprite[..., 3], (0, 0), sigma)
    shadow = np.zeros_like(sprite)
    shadow[..., 3] = (alpha.astype(np.float32) * SHADOW_ALPHA).astype(np.uint8)
    return shadow


class OverlayRenderer:
    def __init__(self, settings: Settings | None = None, shadow: bool = True):
        self.s = settings or Settings()
        self.shadow = shadow

    # ---- placement ----
    def placements(self, anchors: AnchorSet, asset: ProductAsset) -> List[Placement]:
        face_w = anchors.region.width
        face_h = anchors.region.height
        aspect = asset.natural_height / float(max(1, asset.natural_width))

        if asset.kind == "necklace":
            w = max(1, int(round(face_w * NECKLACE_WIDTH)))
            h = max(1, int(round(w * aspect * NECKLACE_FLATTEN)))
            return [Placement(x=anchors.chin.x - w / 2.0, y=anchors.chin.y + face_h * NECKLACE_DROP,
                              width=w, height=h)]

        if asset.kind == "ring":
            size = max(RING_MIN_PX, int(round(face_w * RING_SIZE)))
            cx = anchors.right_cheek.x + face_w * RING_OUT
            cy = anchors.right_cheek.y + face_h * RING_DOWN
            return [Placement(x=cx - size / 2.0, y=cy - size / 2.0, width=size, height=size)]

        # earrings: one asset, right side drawn through a horizontal mirror
        w = max(EARRING_MIN_PX, int(round(face_w * EARRING_WIDTH)))
        h = max(1, int(round(w * aspect)))
        drop = face_h * EARRING_DROP
        return [
            Placement(x=anchors.left_ear.x - w / 2.0, y=anchors.left_ear.y + drop, width=w, height=h),
            Placement(x=anchors.right_ear.x - w / 2.0, y=anchors.right_ear.y + drop, width=w, height=h,
                      mirrored=True),
        ]

    # ---- drawing ----
    def render(self, surface: OverlaySurface, anchors: AnchorSet, asset: ProductAsset) -> List[Placement]:
        placements = self.placements(anchors, asset)
        cache: dict[tuple[int, int], np.ndarray] = {}
        for p in placements:
            key = (p.width, p.height)
            if key not in cache:
                shrinking = p.width < asset.natural_width
                cache[key] = cv2.resize(asset.image, key,
                                        interpolation=cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR)
            sprite = cache[key]
            if p.mirrored:
                sprite = cv2.flip(sprite, 1)
            if self.shadow:
                surface.draw_image(_shadow_of(sprite), p.x + SHADOW_OFFSET[0], p.y + SHADOW_OFFSET[1])
            surface.draw_image(sprite, p.x, p.y, opacity=self.s.OVERLAY_OPACITY)
        return placements

    def render_frame(self, surface: OverlaySurface, anchors: Optional[AnchorSet],
                     ctx: SessionContext) -> List[Placement]:
        """Clear and redraw the surface for one tick.

        A miss re-renders with the session's last good anchors; rendering
        switches off only when no anchors exist at all or no asset is loaded.
        """
        surface.clear()
        if anchors is not None:
            ctx.last_anchors = anchors
        if ctx.asset is None:
            # anchors are still tracked so a late asset can hold the last good frame
            ctx.rendering_active = False
            return []

        if anchors is None:
            if ctx.last_anchors is None:
                ctx.rendering_active = False
                return []
            anchors = ctx.last_anchors
            ctx.stale_renders += 1

        placements = self.render(surface, anchors, ctx.asset)
        ctx.rendering_active = True
        return placements


def flatten(frame: np.ndarray, overlay: np.ndarray) -> np.ndarray:
    """Merge a video frame (RGB or RGBA) and an overlay layer into one opaque RGB image."""
    base = frame[..., :3]
    if overlay.shape[:2] != base.shape[:2] or not overlay[..., 3].any():
        return base.copy()
    a = overlay[..., 3:4].astype(np.float32) / 255.0
    out = base.astype(np.float32) * (1.0 - a) + overlay[..., :3].astype(np.float32) * a
    return np.clip(out + 0.5, 0, 255).astype(np.uint8)
