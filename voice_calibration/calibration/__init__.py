# voice_calibration/calibration/__init__.py

"""
VAD calibration module.

Two user-guided measurement phases:
- Phase 1: user speaks 1-2 sentences -> Otsu split -> speech thresholds
- Phase 2: calibration utterance is played back -> echo leakage spikes -> min speech start

Usage:
    from voice_calibration.calibration import CalibrationEngine, CalibrationConfig

    engine = CalibrationEngine(source, recognizer, playback, settings)

    await engine.start()
    ...  # user speaks
    result = engine.finish_phase1()

    if result.no_speech_detected:
        await engine.start()  # retry
    else:
        await engine.start_phase2()
        await engine.playback_task
        engine.apply_results()
"""

from .calibration_engine import CalibrationEngine
from .models import (
    CalibrationConfig,
    CalibrationState,
    Phase1Result,
    Phase2Result,
    ProbabilitySample,
    Spike
)
from .functionality import analyze_leakage, analyze_speech_profile

__all__ = [
    'CalibrationEngine',
    'CalibrationConfig',
    'CalibrationState',
    'Phase1Result',
    'Phase2Result',
    'ProbabilitySample',
    'Spike',
    'analyze_leakage',
    'analyze_speech_profile'
]

__version__ = '1.0.0'
