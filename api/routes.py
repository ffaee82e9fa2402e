"""
REST endpoints for the try-on compositor.
"""
import logging

import cv2
import numpy as np
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import Response

from tryon.assets import load_product_asset
from tryon.camera import OpenCVCamera
from tryon.config import Settings
from tryon.controller import TryOnController
from tryon.errors import AssetLoadError, NoFaceDetected, TryOnError
from tryon.models import CompositorStatus, ControllerStatus, ProductInfo
from tryon.scheduler import ThreadScheduler
from tryon.session import CaptureSession
from tryon.visual import composite_photo

router = APIRouter(prefix="/tryon")
logger = logging.getLogger(__name__)


def build_controller(settings: Settings) -> TryOnController:
    """One controller per app; the camera is only opened on /tryon/start."""
    camera = OpenCVCamera(settings.CAMERA_INDEX, settings.CAMERA_WIDTH, settings.CAMERA_HEIGHT)
    session = CaptureSession(camera, ThreadScheduler(settings.LOOP_FPS), settings)
    return TryOnController(session)


def get_controller(request: Request) -> TryOnController:
    return request.app.state.controller


def _settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or Settings()


def _jpeg(image_rgb_or_bgr: np.ndarray, quality: int, filename: str | None = None) -> Response:
    ok, buf = cv2.imencode(".jpg", image_rgb_or_bgr, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise HTTPException(status_code=500, detail="JPEG encoding failed")
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'} if filename else None
    return Response(content=buf.tobytes(), media_type="image/jpeg", headers=headers)


@router.post("/product", response_model=ControllerStatus)
def select_product(product: ProductInfo, controller: TryOnController = Depends(get_controller)):
    """
    Select the product to try on; reloads the overlay asset.

    An image that fails to load is reported in the status (asset_error)
    rather than as an HTTP error, since the camera session can keep running.
    """
    logger.debug(f"[api] /tryon/product name={product.name} category={product.category}")
    controller.select_product(product)
    return controller.status()


@router.post("/start", response_model=ControllerStatus)
def start(controller: TryOnController = Depends(get_controller)):
    try:
        ok = controller.start()
    except TryOnError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not ok:
        raise HTTPException(status_code=503, detail=controller.error)
    return controller.status()


@router.get("/status", response_model=CompositorStatus)
async def status(controller: TryOnController = Depends(get_controller)):
    return controller.session.status()


@router.get("/frame")
def frame(request: Request, controller: TryOnController = Depends(get_controller)):
    """Current mirrored preview (video + overlay) as JPEG."""
    view = controller.session.preview()
    if view is None:
        raise HTTPException(status_code=404, detail="no frame available")
    return _jpeg(view, _settings(request).JPEG_QUALITY)


@router.post("/capture")
def capture(request: Request, controller: TryOnController = Depends(get_controller)):
    try:
        result = controller.capture()
    except TryOnError as e:
        raise HTTPException(status_code=409, detail=str(e))
    finally:
        controller.resume()
    bgr = cv2.cvtColor(result.image, cv2.COLOR_RGB2BGR)
    return _jpeg(bgr, _settings(request).JPEG_QUALITY, filename=result.filename)


@router.post("/stop", response_model=ControllerStatus)
def stop(controller: TryOnController = Depends(get_controller)):
    controller.stop()
    return controller.status()


@router.post("/photo")
def try_on_photo(
    request: Request,
    file: UploadFile = File(...),
    name: str = Form(...),
    image_url: str = Form(...),
    category: str = Form(""),
):
    """
    Composite a product onto an uploaded still photo.

    Args:
        file: Uploaded photo (any OpenCV-decodable format).
        name: Product display name (also drives the download filename).
        image_url: Product image URL or path.
        category: Optional category text used for classification.

    Returns:
        Response: JPEG attachment.
    """
    settings = _settings(request)
    data = file.file.read()
    photo = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR) if data else None
    if photo is None:
        raise HTTPException(status_code=400, detail="could not decode uploaded photo")

    try:
        asset = load_product_asset(ProductInfo(name=name, category=category, image_url=image_url),
                                   timeout=settings.ASSET_TIMEOUT)
        result = composite_photo(photo, asset, settings)
    except AssetLoadError as e:
        logger.warning(f"[api] /tryon/photo asset failed: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except NoFaceDetected as e:
        raise HTTPException(status_code=422, detail=str(e))

    bgr = cv2.cvtColor(result.image, cv2.COLOR_RGB2BGR)
    return _jpeg(bgr, settings.JPEG_QUALITY, filename=result.filename)
