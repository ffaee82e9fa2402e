import pytest

from conftest import FakeCamera, make_asset
from tryon.controller import TryOnController
from tryon.errors import AssetLoadError, TryOnError
from tryon.models import ProductInfo
from tryon.scheduler import ManualScheduler
from tryon.session import CaptureSession

PRODUCT = ProductInfo(name="Gold Chandbali", category="Earrings", image_url="https://cdn.example/c.png")


def _fake_loader(product, timeout):
    return make_asset(name=product.name)


def _controller(settings, camera=None, loader=_fake_loader):
    camera = camera or FakeCamera()
    sched = ManualScheduler()
    return TryOnController(CaptureSession(camera, sched, settings), loader=loader), camera, sched


def test_full_lifecycle(settings):
    ctl, cam, sched = _controller(settings)
    assert ctl.step == "idle"

    assert ctl.select_product(PRODUCT)
    assert ctl.step == "previewing"

    assert ctl.start()
    assert ctl.step == "live"
    sched.run_frame()
    assert ctl.status().session.overlay_active

    shot = ctl.capture()
    assert ctl.step == "captured"
    assert shot.filename == "gold-chandbali-virtual-try-on.jpg"
    assert shot.overlay_drawn

    ctl.resume()
    assert ctl.step == "live"

    ctl.stop()
    assert ctl.step == "previewing"
    assert cam.release_calls == 1

    ctl.close()
    assert ctl.step == "idle"
    assert ctl.product is None
    assert cam.release_calls == 1


def test_start_needs_a_product(settings):
    ctl, cam, _ = _controller(settings)
    with pytest.raises(TryOnError):
        ctl.start()
    assert cam.open_calls == 0


def test_capture_outside_live_raises(settings):
    ctl, _, _ = _controller(settings)
    ctl.select_product(PRODUCT)
    with pytest.raises(TryOnError):
        ctl.capture()


def test_camera_failure_stays_previewing(settings):
    ctl, cam, sched = _controller(settings, FakeCamera(fail=True))
    ctl.select_product(PRODUCT)
    assert not ctl.start()
    assert ctl.step == "previewing"
    assert ctl.error.startswith("Unable to access camera.")
    assert sched.pending == 0

    # a retry goes back to the camera
    cam.fail = False
    assert ctl.start()
    assert ctl.error is None
    assert ctl.step == "live"


def test_asset_failure_reported_not_raised(settings):
    def broken(product, timeout):
        raise AssetLoadError("404 Not Found")

    ctl, _, sched = _controller(settings, loader=broken)
    assert not ctl.select_product(PRODUCT)
    assert ctl.step == "previewing"
    assert ctl.error == "404 Not Found"
    assert ctl.start()
    sched.run_frame()
    assert ctl.status().session.asset_error == "404 Not Found"


def test_switching_product_while_live(settings):
    ctl, _, sched = _controller(settings)
    ctl.select_product(PRODUCT)
    ctl.start()
    sched.run_frame()

    ctl.select_product(ProductInfo(name="Temple Necklace", image_url="x"))
    assert ctl.step == "live"
    assert ctl.session.ctx.asset.name == "Temple Necklace"
    sched.run_frame()
    assert ctl.status().product == "Temple Necklace"
