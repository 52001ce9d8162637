# voice_calibration/calibration/functionality/__init__.py

"""Calibration functionality modules - sampling, overrides and the two phase analyzers."""

from .sampler import Sampler, SamplingHandle, monotonic_ms
from .scoped_override import ScopedOverride
from .speech_profile_analyzer import analyze_speech_profile, otsu_bin, otsu_split, snap_threshold
from .leakage_analyzer import analyze_leakage, detect_spikes, recommend_min_speech_start
from .timeout_wrapper import with_timeout

__all__ = [
    'Sampler',
    'SamplingHandle',
    'monotonic_ms',
    'ScopedOverride',
    'analyze_speech_profile',
    'otsu_bin',
    'otsu_split',
    'snap_threshold',
    'analyze_leakage',
    'detect_spikes',
    'recommend_min_speech_start',
    'with_timeout'
]
