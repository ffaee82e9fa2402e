"""
Configuration for the try-on compositor.
"""
from pydantic import BaseModel
import os

class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))
    CAMERA_WIDTH: int = int(os.getenv("CAMERA_WIDTH", "640"))
    CAMERA_HEIGHT: int = int(os.getenv("CAMERA_HEIGHT", "480"))
    LOOP_FPS: float = float(os.getenv("LOOP_FPS", "30"))
    MIRROR_PREVIEW: bool = os.getenv("MIRROR_PREVIEW", "1").strip().lower() not in ("0", "false", "no")

    # Skin-region estimator
    SAMPLE_STEP: int = int(os.getenv("SAMPLE_STEP", "4"))
    MIN_SKIN_SAMPLES: int = int(os.getenv("MIN_SKIN_SAMPLES", "60"))
    DETECTION_THRESHOLD: float = float(os.getenv("DETECTION_THRESHOLD", "0.3"))
    SKIN_DENSITY: float = float(os.getenv("SKIN_DENSITY", "0.15"))
    FACE_PADDING: float = float(os.getenv("FACE_PADDING", "1.1"))
    FACE_ASPECT: float = float(os.getenv("FACE_ASPECT", "1.28"))

    # Overlay + status
    OVERLAY_OPACITY: float = float(os.getenv("OVERLAY_OPACITY", "0.88"))
    NO_FACE_HINT_TICKS: int = int(os.getenv("NO_FACE_HINT_TICKS", "45"))
    CONFIDENCE_SMOOTHING: float = float(os.getenv("CONFIDENCE_SMOOTHING", "0.4"))

    # Export + assets
    JPEG_QUALITY: int = int(os.getenv("JPEG_QUALITY", "92"))
    ASSET_TIMEOUT: float = float(os.getenv("ASSET_TIMEOUT", "10"))

    def __init__(self, **data):
        super().__init__(**data)
        # Clamp knobs that would otherwise break the frame loop
        object.__setattr__(self, "SAMPLE_STEP", max(1, int(self.SAMPLE_STEP)))
        object.__setattr__(self, "LOOP_FPS", max(1.0, float(self.LOOP_FPS)))
        object.__setattr__(self, "DETECTION_THRESHOLD", min(1.0, max(0.0, float(self.DETECTION_THRESHOLD))))
        object.__setattr__(self, "OVERLAY_OPACITY", min(1.0, max(0.0, float(self.OVERLAY_OPACITY))))
        object.__setattr__(self, "CONFIDENCE_SMOOTHING", min(1.0, max(0.01, float(self.CONFIDENCE_SMOOTHING))))
        object.__setattr__(self, "JPEG_QUALITY", min(100, max(1, int(self.JPEG_QUALITY))))
        if self.SKIN_DENSITY <= 0:
            object.__setattr__(self, "SKIN_DENSITY", 0.15)
