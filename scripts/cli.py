"""
CLI to try a product on a still photo -> JPEG.
"""
from __future__ import annotations
import argparse, os
import cv2
from tryon.assets import load_product_asset
from tryon.config import Settings
from tryon.models import ProductInfo
from tryon.visual import composite_photo

def main():
    p = argparse.ArgumentParser()
    p.add_argument("--photo", required=True, help="Path to a face photo")
    p.add_argument("--product-image", required=True, help="Product image path or URL")
    p.add_argument("--name", required=True, help="Product display name")
    p.add_argument("--category", default="", help="Product category (earrings/necklace/ring)")
    p.add_argument("--out-dir", default="output", help="Directory for the composited JPEG")
    args = p.parse_args()

    settings = Settings()
    photo = cv2.imread(args.photo, cv2.IMREAD_COLOR)
    if photo is None:
        raise SystemExit(f"Could not read photo: {args.photo}")

    product = ProductInfo(name=args.name, category=args.category, image_url=args.product_image)
    asset = load_product_asset(product, timeout=settings.ASSET_TIMEOUT)
    result = composite_photo(photo, asset, settings)

    os.makedirs(args.out_dir, exist_ok=True)
    out_path = os.path.join(args.out_dir, result.filename)
    with open(out_path, "wb") as f:
        f.write(result.to_jpeg(settings.JPEG_QUALITY))
    print(f"✅ Try-on written to {out_path} ({asset.kind}, {result.width}x{result.height})")

if __name__ == "__main__":
    main()
