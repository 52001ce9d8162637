# voice_calibration/calibration/models/__init__.py

"""Calibration models - data classes for samples, results, state and configuration."""

from .probability_sample import ProbabilitySample, Spike
from .calibration_results import Phase1Result, Phase2Result
from .calibration_state import CalibrationState
from .calibration_config import (
    CalibrationConfig,
    DEFAULT_CALIBRATION_TEXT,
    FRAME_DURATION_MS,
    HISTOGRAM_BINS,
    THRESHOLD_CEILING,
    THRESHOLD_FLOOR,
    THRESHOLD_STEP
)

__all__ = [
    'ProbabilitySample',
    'Spike',
    'Phase1Result',
    'Phase2Result',
    'CalibrationState',
    'CalibrationConfig',
    'DEFAULT_CALIBRATION_TEXT',
    'FRAME_DURATION_MS',
    'HISTOGRAM_BINS',
    'THRESHOLD_CEILING',
    'THRESHOLD_FLOOR',
    'THRESHOLD_STEP'
]
