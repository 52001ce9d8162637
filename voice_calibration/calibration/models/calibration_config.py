# voice_calibration/calibration/models/calibration_config.py

"""Calibration configuration model with production defaults."""

from dataclasses import dataclass, fields

from voice_calibration.core.exceptions import ConfigurationError

# Structural constants - threshold invariants depend on them, not configurable
HISTOGRAM_BINS = 100
THRESHOLD_STEP = 0.05
THRESHOLD_FLOOR = 0.05
THRESHOLD_CEILING = 0.9
FRAME_DURATION_MS = 32

DEFAULT_CALIBRATION_TEXT = (
    "The quick brown fox jumps over the lazy dog. This sentence is being used "
    "to test echo cancellation and voice activity detection calibration."
)


@dataclass
class CalibrationConfig:
    """
    Konfigurace kalibrace VAD.
    Defaults odpovídají ověřeným konstantám z produkce.
    """

    # ========================================
    # Phase 1 - speech profile
    # ========================================
    min_candidate_threshold: float = 0.15  # Clamp candidate threshold (low)
    max_candidate_threshold: float = 0.9  # Clamp candidate threshold (high)
    min_cluster_mean_gap: float = 0.1  # Below = no separable speech
    threshold_bias: float = 0.3  # 0.0 = ambient ceiling, 1.0 = speech floor
    speech_floor_percentile: float = 0.1
    ambient_ceiling_percentile: float = 0.9
    hysteresis: float = 0.15  # positive - negative
    min_negative_threshold: float = 0.05

    # Degenerate fallbacks
    default_positive_threshold: float = 0.7
    default_negative_threshold: float = 0.55
    default_speech_floor: float = 0.6

    # ========================================
    # Phase 2 - echo leakage
    # ========================================
    min_spike_duration_ms: float = 10.0  # Shorter = sensor noise
    min_spike_margin_ms: float = 50.0
    spike_margin_ratio: float = 0.3
    default_min_speech_start_ms: int = 150
    interruption_spike_limit_ms: float = 500.0

    # ========================================
    # Sampling & playback
    # ========================================
    tick_interval_ms: float = 16.0  # ~60 Hz
    calibration_text: str = DEFAULT_CALIBRATION_TEXT
    speech_rate: float = 1.0
    playback_timeout_s: float = 60.0

    def validate(self) -> None:
        """Validuj konfiguraci."""
        if not THRESHOLD_FLOOR <= self.min_candidate_threshold <= THRESHOLD_CEILING:
            raise ConfigurationError(
                f"min_candidate_threshold must be within [{THRESHOLD_FLOOR}, {THRESHOLD_CEILING}]"
            )

        if not THRESHOLD_FLOOR <= self.max_candidate_threshold <= THRESHOLD_CEILING:
            raise ConfigurationError(
                f"max_candidate_threshold must be within [{THRESHOLD_FLOOR}, {THRESHOLD_CEILING}]"
            )

        if self.min_candidate_threshold > self.max_candidate_threshold:
            raise ConfigurationError("min_candidate_threshold must be <= max_candidate_threshold")

        if not 0.0 < self.min_cluster_mean_gap <= 1.0:
            raise ConfigurationError("min_cluster_mean_gap must be within (0, 1]")

        if not 0.0 <= self.threshold_bias <= 1.0:
            raise ConfigurationError("threshold_bias must be within [0, 1]")

        for name in ("speech_floor_percentile", "ambient_ceiling_percentile"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1]")

        if self.hysteresis < 0:
            raise ConfigurationError("hysteresis must be >= 0")

        if not THRESHOLD_FLOOR <= self.min_negative_threshold <= THRESHOLD_CEILING:
            raise ConfigurationError(
                f"min_negative_threshold must be within [{THRESHOLD_FLOOR}, {THRESHOLD_CEILING}]"
            )

        # negative <= positive holds only if the negative floor sits below the candidate clamp
        if self.min_negative_threshold > self.min_candidate_threshold:
            raise ConfigurationError("min_negative_threshold must be <= min_candidate_threshold")

        if not (THRESHOLD_FLOOR <= self.default_negative_threshold
                <= self.default_positive_threshold <= THRESHOLD_CEILING):
            raise ConfigurationError(
                "default thresholds must satisfy 0.05 <= negative <= positive <= 0.9"
            )

        if self.min_spike_duration_ms < 0:
            raise ConfigurationError("min_spike_duration_ms must be >= 0")

        if self.min_spike_margin_ms < 0 or self.spike_margin_ratio < 0:
            raise ConfigurationError("spike margins must be >= 0")

        if self.default_min_speech_start_ms <= 0:
            raise ConfigurationError("default_min_speech_start_ms must be > 0")

        if self.tick_interval_ms < 0:
            raise ConfigurationError("tick_interval_ms must be >= 0")

        if self.speech_rate <= 0:
            raise ConfigurationError("speech_rate must be > 0")

        if self.playback_timeout_s <= 0:
            raise ConfigurationError("playback_timeout_s must be > 0")

        if not self.calibration_text.strip():
            raise ConfigurationError("calibration_text must not be empty")

    @classmethod
    def from_dict(cls, data: dict) -> "CalibrationConfig":
        """
        Build config from a mapping (e.g. YAML section).
        Unknown keys are rejected so that typos do not silently fall back to defaults.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown calibration config keys: {unknown}")
        config = cls(**data)
        config.validate()
        return config

    def to_dict(self) -> dict:
        """Export config jako dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
