import cv2
import numpy as np
import pytest
import requests

import tryon.assets as assets
from tryon.assets import capture_filename, classify_product, decode_product_image, load_product_asset
from tryon.errors import AssetLoadError
from tryon.models import ProductInfo


@pytest.mark.parametrize("name,category,kind", [
    ("Gold Chandbali", "", "earrings"),
    ("Pearl Drop", "Earrings", "earrings"),
    ("Diamond Ring", "", "ring"),
    ("Engagement Rings", "", "ring"),
    ("Silver Chain", "", "necklace"),
    ("Layered Set", "Necklace", "necklace"),
    ("Hoop Earring", "", "earrings"),
    ("String Bracelet", "", "earrings"),
    ("Mystery Item", None, "earrings"),
    # "ring" only counts as a whole word
    ("Spring Chain", "", "necklace"),
    ("Spring Blossom Stud", "", "earrings"),
    ("Diamondring", "", "earrings"),
])
def test_classify_product(name, category, kind):
    assert classify_product(name, category) == kind


def test_category_is_consulted_before_name():
    assert classify_product("Ring-shaped Pendant", "Necklace") == "necklace"


def test_capture_filename_is_deterministic():
    assert capture_filename("Gold Jhumka Set") == "gold-jhumka-set-virtual-try-on.jpg"
    assert capture_filename("  Ruby / Ring!! ") == "ruby-ring-virtual-try-on.jpg"
    assert capture_filename("") == "product-virtual-try-on.jpg"


def test_decode_png_with_alpha_to_rgba():
    bgra = np.zeros((6, 4, 4), dtype=np.uint8)
    bgra[..., 0] = 10    # B
    bgra[..., 2] = 200   # R
    bgra[..., 3] = 128
    ok, buf = cv2.imencode(".png", bgra)
    rgba = decode_product_image(buf.tobytes())
    assert rgba.shape == (6, 4, 4)
    assert tuple(rgba[0, 0]) == (200, 0, 10, 128)


def test_decode_jpeg_gets_opaque_alpha():
    ok, buf = cv2.imencode(".jpg", np.full((8, 8, 3), 90, dtype=np.uint8))
    rgba = decode_product_image(buf.tobytes())
    assert rgba.shape == (8, 8, 4)
    assert (rgba[..., 3] == 255).all()


@pytest.mark.parametrize("payload", [b"", b"not an image at all"])
def test_decode_garbage_raises(payload):
    with pytest.raises(AssetLoadError):
        decode_product_image(payload)


def test_load_from_path_and_file_url(product_png):
    asset = load_product_asset(ProductInfo(name="Gold Chandbali", image_url=str(product_png)))
    assert asset.kind == "earrings"
    assert (asset.natural_width, asset.natural_height) == (20, 40)
    again = load_product_asset(ProductInfo(name="Gold Chain", image_url=f"file://{product_png}"))
    assert again.kind == "necklace"


@pytest.mark.parametrize("url", ["", "   ", "/does/not/exist.png"])
def test_load_missing_image_raises(url):
    with pytest.raises(AssetLoadError):
        load_product_asset(ProductInfo(name="x", image_url=url))


def test_load_over_http(monkeypatch, product_png):
    class Resp:
        content = product_png.read_bytes()
        def raise_for_status(self):
            pass

    seen = {}
    def fake_get(url, timeout):
        seen["url"], seen["timeout"] = url, timeout
        return Resp()

    monkeypatch.setattr(assets.requests, "get", fake_get)
    asset = load_product_asset(ProductInfo(name="Ruby Ring", image_url="https://cdn.example/r.png"), timeout=3)
    assert asset.kind == "ring"
    assert seen == {"url": "https://cdn.example/r.png", "timeout": 3}


def test_http_failure_becomes_asset_error(monkeypatch):
    def boom(url, timeout):
        raise requests.ConnectionError("unreachable")
    monkeypatch.setattr(assets.requests, "get", boom)
    with pytest.raises(AssetLoadError):
        load_product_asset(ProductInfo(name="x", image_url="http://cdn.example/x.png"))
