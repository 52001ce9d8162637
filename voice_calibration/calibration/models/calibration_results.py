# voice_calibration/calibration/models/calibration_results.py

"""Phase result models."""

from dataclasses import dataclass, field
from typing import Tuple

from .probability_sample import ProbabilitySample, Spike


@dataclass(frozen=True)
class Phase1Result:
    """
    Výsledek Phase 1 - profil řeči uživatele.
    Thresholds jsou kvantované na 0.05 a v rozsahu [0.05, 0.9].
    """
    samples: Tuple[ProbabilitySample, ...]
    positive_threshold: float
    negative_threshold: float
    ambient_ceiling: float
    speech_floor: float
    no_speech_detected: bool
    split_point: float = 0.0  # Otsu split (diagnostics)

    def to_dict(self) -> dict:
        """Export as dict (samples summarised by count)"""
        return {
            'sample_count': len(self.samples),
            'positive_threshold': self.positive_threshold,
            'negative_threshold': self.negative_threshold,
            'ambient_ceiling': round(self.ambient_ceiling, 3),
            'speech_floor': round(self.speech_floor, 3),
            'no_speech_detected': self.no_speech_detected,
            'split_point': round(self.split_point, 3)
        }


@dataclass(frozen=True)
class Phase2Result:
    """
    Výsledek Phase 2 - echo leakage profil během přehrávání.
    """
    samples: Tuple[ProbabilitySample, ...]
    threshold: float
    spikes: Tuple[Spike, ...] = field(default_factory=tuple)
    max_spike_duration: float = 0.0  # ms
    recommended_min_speech_start_ms: int = 150
    recommend_disable_interruption: bool = False

    def to_dict(self) -> dict:
        """Export as dict (samples summarised by count)"""
        return {
            'sample_count': len(self.samples),
            'threshold': self.threshold,
            'spikes': [spike.to_dict() for spike in self.spikes],
            'max_spike_duration': round(self.max_spike_duration, 1),
            'recommended_min_speech_start_ms': self.recommended_min_speech_start_ms,
            'recommend_disable_interruption': self.recommend_disable_interruption
        }
