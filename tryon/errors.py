"""
Error taxonomy for the compositor.

Per-frame detection misses are not errors and never raise; only camera and
asset failures are represented here.
"""


class TryOnError(RuntimeError):
    """Base class for compositor failures."""


class CameraAccessError(TryOnError):
    """Camera permission denied, device missing, or stream unreadable. Fatal to the session."""


class AssetLoadError(TryOnError):
    """Product image could not be fetched or decoded. Non-fatal: rendering is suspended."""


class NoFaceDetected(TryOnError):
    """Raised by the still-photo path when no usable skin region is found."""
