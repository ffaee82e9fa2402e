"""Run the live try-on window.

Usage:
    uvicorn api.main:app --reload  # (separate, for API)
    python scripts/live_tryon.py --name "Gold Jhumka" --category earrings --image path/to/earring.png

Keys: c = save capture, d = toggle debug anchors, q = quit.
"""
import argparse
from tryon.config import Settings
from tryon.live import run_live_tryon
from tryon.models import ProductInfo

if __name__ == '__main__':
    p = argparse.ArgumentParser()
    p.add_argument("--image", required=True, help="Product image path or URL")
    p.add_argument("--name", required=True, help="Product display name")
    p.add_argument("--category", default="", help="Product category")
    p.add_argument("--camera", type=int, default=None, help="Camera index override")
    p.add_argument("--debug", action="store_true", help="Start with debug anchors visible")
    args = p.parse_args()

    s = Settings()
    saved = run_live_tryon(s, ProductInfo(name=args.name, category=args.category, image_url=args.image),
                           camera_index=args.camera, debug=args.debug)
    for path in saved:
        print(f"saved {path}")
