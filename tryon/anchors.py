"""
Anchor projection: fixed proportional offsets from a SkinRegion.

Pure function of the region's centre and size. Left/right pairs share the
same horizontal offset so they stay mirror-symmetric about the centre line,
which the earring renderer relies on.
"""
from __future__ import annotations

from tryon.models import AnchorSet, Point, SkinRegion

# (dx, dy) as fractions of region width / height, relative to the centre
EAR = (0.42, -0.10)
NOSE = (0.0, 0.02)
CHIN = (0.0, 0.38)
FOREHEAD = (0.0, -0.32)
CHEEK = (0.25, 0.06)
TEMPLE = (0.38, -0.24)
EYE = (0.18, -0.12)


def _pair(cx: float, cy: float, w: float, h: float, ratios: tuple[float, float]) -> tuple[Point, Point]:
    dx = ratios[0] * w
    y = cy + ratios[1] * h
    return Point(x=cx - dx, y=y), Point(x=cx + dx, y=y)


def _single(cx: float, cy: float, w: float, h: float, ratios: tuple[float, float]) -> Point:
    return Point(x=cx + ratios[0] * w, y=cy + ratios[1] * h)


def project(region: SkinRegion) -> AnchorSet:
    cx, cy = region.center_x, region.center_y
    w, h = region.width, region.height

    left_ear, right_ear = _pair(cx, cy, w, h, EAR)
    left_cheek, right_cheek = _pair(cx, cy, w, h, CHEEK)
    left_temple, right_temple = _pair(cx, cy, w, h, TEMPLE)
    left_eye, right_eye = _pair(cx, cy, w, h, EYE)

    return AnchorSet(
        region=region,
        left_ear=left_ear,
        right_ear=right_ear,
        nose=_single(cx, cy, w, h, NOSE),
        chin=_single(cx, cy, w, h, CHIN),
        forehead=_single(cx, cy, w, h, FOREHEAD),
        left_cheek=left_cheek,
        right_cheek=right_cheek,
        left_temple=left_temple,
        right_temple=right_temple,
        left_eye=left_eye,
        right_eye=right_eye,
    )
