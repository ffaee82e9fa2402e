import dataclasses

import numpy as np
import pytest

from tryon.config import Settings
from tryon.models import VideoFrame
from tryon.skin import DEFAULT_RULES, SkinRegionEstimator, SkinRule
from conftest import FACE_RECT, make_frame


def test_estimator_finds_centre_of_skin_rectangle(settings):
    est = SkinRegionEstimator(settings)
    region = est.estimate(VideoFrame.from_bgr(make_frame()))
    assert region is not None

    x, y, w, h = FACE_RECT
    true_cx, true_cy = x + w / 2, y + h / 2
    assert abs(region.center_x - true_cx) <= 0.05 * w
    assert abs(region.center_y - true_cy) <= 0.05 * h
    assert region.confidence > settings.DETECTION_THRESHOLD


def test_region_is_padded_and_uses_face_aspect(settings):
    region = SkinRegionEstimator(settings).estimate(VideoFrame.from_bgr(make_frame()))
    assert region.width == pytest.approx(FACE_RECT[2] * settings.FACE_PADDING, rel=0.05)
    assert region.height == pytest.approx(region.width * settings.FACE_ASPECT)


def test_blank_frame_returns_none(settings):
    frame = VideoFrame.from_bgr(make_frame(rect=None))
    assert SkinRegionEstimator(settings).estimate(frame) is None


@pytest.mark.parametrize("side", [8, 20, 40, 60, 120, 200, 320])
def test_low_confidence_is_never_returned(settings, side):
    frame = VideoFrame.from_bgr(make_frame(rect=(100, 100, side, side)))
    region = SkinRegionEstimator(settings).estimate(frame)
    if region is not None:
        assert settings.DETECTION_THRESHOLD <= region.confidence <= 1.0


def test_small_patch_below_threshold_is_none(settings):
    # 100 samples clears the count floor but not the density-based confidence
    frame = VideoFrame.from_bgr(make_frame(rect=(300, 200, 40, 40)))
    assert SkinRegionEstimator(settings).estimate(frame) is None


@pytest.mark.parametrize("rgb", [(224, 172, 140), (170, 160, 110), (90, 60, 45)])
def test_rules_cover_light_olive_and_dark_tones(rgb):
    est = SkinRegionEstimator(Settings())
    patch = np.array([[rgb]], dtype=np.uint8)
    assert est.sample_weights(patch)[0, 0] > 0


@pytest.mark.parametrize("rgb", [(0, 0, 0), (255, 255, 255), (40, 70, 160), (0, 200, 0)])
def test_rules_reject_background_colours(rgb):
    est = SkinRegionEstimator(Settings())
    patch = np.array([[rgb]], dtype=np.uint8)
    assert est.sample_weights(patch)[0, 0] == 0


def test_rule_table_is_data(settings):
    frame = VideoFrame.from_bgr(make_frame())
    disabled = tuple(dataclasses.replace(r, weight=0.0) for r in DEFAULT_RULES)
    assert SkinRegionEstimator(settings, rules=disabled).estimate(frame) is None

    only_light = (DEFAULT_RULES[0],)
    assert SkinRegionEstimator(settings, rules=only_light).estimate(frame) is not None


def test_sample_weight_is_max_of_matching_rules():
    always = SkinRule("always", lambda r, g, b: np.ones(r.shape, dtype=bool), 0.5)
    strong = SkinRule("strong", lambda r, g, b: r > 100, 2.0)
    est = SkinRegionEstimator(Settings(), rules=(always, strong))
    w = est.sample_weights(np.array([[(200, 0, 0), (10, 0, 0)]], dtype=np.uint8))
    assert w.tolist() == [[2.0, 0.5]]


def test_empty_rule_table_rejected():
    with pytest.raises(ValueError):
        SkinRegionEstimator(Settings(), rules=())
