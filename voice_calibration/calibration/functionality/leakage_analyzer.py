# voice_calibration/calibration/functionality/leakage_analyzer.py

"""
Phase 2 analysis: find echo-leakage spikes recorded while the calibration
utterance was played back and derive the minimum speech-start duration.
"""

import math
from typing import List, Optional, Sequence

import structlog

from ..models import (
    CalibrationConfig,
    FRAME_DURATION_MS,
    Phase2Result,
    ProbabilitySample,
    Spike
)

logger = structlog.get_logger()


def detect_spikes(
        samples: Sequence[ProbabilitySample],
        threshold: float,
        min_duration_ms: float = 10.0
) -> List[Spike]:
    """
    Najdi souvislé úseky s probability >= threshold.

    A spike ends at the timestamp of the first sample that drops below the
    threshold, or at the last sample if the run reaches the end of input.
    Spikes of min_duration_ms or shorter are sensor noise and are dropped.

    Returns:
        Non-overlapping spikes in start-time order
    """
    spikes: List[Spike] = []
    start: Optional[float] = None
    peak = 0.0

    def close(end_time: float) -> None:
        if end_time - start > min_duration_ms:
            spikes.append(Spike(start_time=start, end_time=end_time, peak_probability=peak))

    for sample in samples:
        if sample.probability >= threshold:
            if start is None:
                start = sample.timestamp
                peak = sample.probability
            else:
                peak = max(peak, sample.probability)
        elif start is not None:
            close(sample.timestamp)
            start = None
            peak = 0.0

    if start is not None:
        close(samples[-1].timestamp)

    return spikes


def recommend_min_speech_start(max_spike_duration: float, config: CalibrationConfig) -> int:
    """
    Max spike + margin, snapped up to the 32 ms VAD frame.
    Without leakage the default is returned unchanged.
    """
    if max_spike_duration <= 0:
        return config.default_min_speech_start_ms

    margin = max(config.min_spike_margin_ms, config.spike_margin_ratio * max_spike_duration)
    return int(math.ceil((max_spike_duration + margin) / FRAME_DURATION_MS) * FRAME_DURATION_MS)


def analyze_leakage(
        samples: Sequence[ProbabilitySample],
        threshold: float,
        config: Optional[CalibrationConfig] = None
) -> Phase2Result:
    """
    Detect leakage spikes against the Phase 1 positive threshold.

    Pure and total: empty input yields no spikes and the default recommendation.

    Args:
        samples: Samples collected during utterance playback
        threshold: positive_threshold from Phase 1
        config: Calibration constants

    Returns:
        Phase2Result
    """
    config = config or CalibrationConfig()

    spikes = detect_spikes(samples, threshold, config.min_spike_duration_ms) if samples else []
    max_spike_duration = max((spike.duration for spike in spikes), default=0.0)

    result = Phase2Result(
        samples=tuple(samples),
        threshold=threshold,
        spikes=tuple(spikes),
        max_spike_duration=max_spike_duration,
        recommended_min_speech_start_ms=recommend_min_speech_start(max_spike_duration, config),
        recommend_disable_interruption=max_spike_duration > config.interruption_spike_limit_ms
    )

    logger.info(
        "phase2_analyzed",
        samples=len(samples),
        threshold=threshold,
        spikes=len(spikes),
        max_spike_duration=round(max_spike_duration, 1),
        min_speech_start_ms=result.recommended_min_speech_start_ms,
        disable_interruption=result.recommend_disable_interruption
    )

    return result
