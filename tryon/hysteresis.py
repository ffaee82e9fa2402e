"""
Small helpers for smoothing and debouncing per-frame detection signals.
"""
from __future__ import annotations
from typing import Optional


class ConfidenceEMA:
    """Exponential moving average for the detection confidence shown in status."""
    def __init__(self, alpha: float = 0.5):
        self.alpha = float(alpha)
        self.state: Optional[float] = None

    def update(self, value: float) -> float:
        value = float(value)
        if self.state is None:
            self.state = value
        else:
            self.state = self.alpha * value + (1.0 - self.alpha) * self.state
        return self.state

    @property
    def value(self) -> float:
        return 0.0 if self.state is None else float(self.state)

    def reset(self) -> None:
        self.state = None


class NoFaceHysteresis:
    """Debounce the NO_FACE hint with consecutive confirmations."""
    def __init__(self, needed: int = 3):
        self.needed = max(1, int(needed))
        self.count = 0
        self.cur: Optional[str] = None

    def step(self, flag: Optional[str]) -> Optional[str]:
        """
        Update debounced state.
        - "NO_FACE": increment the miss counter and latch when met
        - "CLEAR": explicit clear (a region was detected)
        - None: keep counters and the latched state
        """
        if flag == "NO_FACE":
            self.count += 1
            if self.count >= self.needed:
                self.cur = "NO_FACE"
        elif flag == "CLEAR":
            self.count = 0
            self.cur = None
        return self.cur

    @property
    def active(self) -> bool:
        return self.cur == "NO_FACE"
