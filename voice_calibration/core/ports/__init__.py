"""Ports - abstract collaborator interfaces of the calibration engine."""

from .i_speech_probability_source import ISpeechProbabilitySource
from .i_recognizer_control import IRecognizerControl
from .i_speech_playback import ISpeechPlayback
from .i_settings_sink import (
    ISettingsSink,
    POSITIVE_THRESHOLD,
    NEGATIVE_THRESHOLD,
    MIN_SPEECH_START_MS,
    INTERRUPTION_ENABLED
)

__all__ = [
    'ISpeechProbabilitySource',
    'IRecognizerControl',
    'ISpeechPlayback',
    'ISettingsSink',
    'POSITIVE_THRESHOLD',
    'NEGATIVE_THRESHOLD',
    'MIN_SPEECH_START_MS',
    'INTERRUPTION_ENABLED'
]
