# voice_calibration/calibration/models/probability_sample.py

"""Probability sample and leakage spike models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProbabilitySample:
    """Single VAD probability reading."""
    probability: float  # 0.0-1.0
    timestamp: float  # Monotonic time (ms)


@dataclass(frozen=True)
class Spike:
    """
    Souvislý úsek, kdy pravděpodobnost řeči překročila threshold.
    Během Phase 2 to znamená echo leakage z přehrávání.
    """
    start_time: float  # ms
    end_time: float  # ms
    peak_probability: float

    @property
    def duration(self) -> float:
        """Délka spiku (ms)."""
        return self.end_time - self.start_time

    def to_dict(self) -> dict:
        """Export as dict"""
        return {
            'start_time': round(self.start_time, 1),
            'end_time': round(self.end_time, 1),
            'duration': round(self.duration, 1),
            'peak_probability': round(self.peak_probability, 3)
        }
