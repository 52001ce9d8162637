# voice_calibration/calibration/models/calibration_state.py

"""Calibration state model"""

from enum import Enum


class CalibrationState(Enum):
    """Calibration state machine states"""
    IDLE = "idle"
    PHASE1 = "phase1"  # Sampling user speech
    PHASE1_SUMMARY = "phase1_summary"  # Speech profile ready
    PHASE2 = "phase2"  # Sampling during utterance playback
    PHASE2_SUMMARY = "phase2_summary"  # Leakage profile ready

    @property
    def is_sampling(self) -> bool:
        """Is a measurement phase active?"""
        return self in (CalibrationState.PHASE1, CalibrationState.PHASE2)

    @property
    def is_summary(self) -> bool:
        """Are results waiting for apply/cancel?"""
        return self in (CalibrationState.PHASE1_SUMMARY, CalibrationState.PHASE2_SUMMARY)
