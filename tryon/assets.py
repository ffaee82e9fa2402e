"""
Product asset loading and classification.

- classify_product: map name/category text to an overlay kind
- decode_product_image: bytes -> RGBA ndarray via OpenCV
- load_product_asset: fetch (http, file:// or local path) + decode + classify
"""
from __future__ import annotations
from typing import Tuple
import logging
import os
import re

import cv2
import numpy as np
import requests

from tryon.errors import AssetLoadError
from tryon.models import ProductAsset, ProductInfo, ProductKind

logger = logging.getLogger(__name__)

# Checked in order; "earring" must win over the bare "ring" keyword.
KIND_KEYWORDS: Tuple[Tuple[ProductKind, re.Pattern], ...] = (
    ("earrings", re.compile(r"earring|chandbali")),
    ("necklace", re.compile(r"necklace|chain")),
    ("ring", re.compile(r"\brings?\b")),
)
DEFAULT_KIND: ProductKind = "earrings"


def classify_product(name: str, category: str | None = None) -> ProductKind:
    """Category text is consulted before the product name; default is earrings."""
    for text in (category or "", name or ""):
        text = text.lower()
        for kind, pattern in KIND_KEYWORDS:
            if pattern.search(text):
                return kind
    return DEFAULT_KIND


def capture_filename(product_name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (product_name or "").lower()).strip("-")
    return f"{slug or 'product'}-virtual-try-on.jpg"


def decode_product_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes into an RGBA uint8 array (opaque alpha when missing)."""
    if not data:
        raise AssetLoadError("empty image payload")
    img = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    if img is None or img.size == 0:
        raise AssetLoadError("could not decode product image")

    if img.dtype == np.uint16:
        img = (img / 257).astype(np.uint8)
    elif img.dtype != np.uint8:
        img = cv2.normalize(img, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)

    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)


def _fetch_bytes(url: str, timeout: float) -> bytes:
    if url.startswith(("http://", "https://")):
        try:
            resp = requests.get(url, timeout=timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise AssetLoadError(f"could not fetch product image: {e}") from e
        return resp.content

    path = url[len("file://"):] if url.startswith("file://") else url
    if not os.path.exists(path):
        raise AssetLoadError(f"product image not found: {path}")
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise AssetLoadError(f"could not read product image: {e}") from e


def load_product_asset(product: ProductInfo, timeout: float = 10.0) -> ProductAsset:
    url = (product.image_url or "").strip()
    if not url:
        raise AssetLoadError(f"product '{product.name}' has no image")

    logger.debug(f"[assets] loading '{product.name}' from {url}")
    image = decode_product_image(_fetch_bytes(url, timeout))
    kind = classify_product(product.name, product.category)
    logger.debug(f"[assets] '{product.name}' kind={kind} size={image.shape[1]}x{image.shape[0]}")
    return ProductAsset(name=product.name, kind=kind, image=image)
