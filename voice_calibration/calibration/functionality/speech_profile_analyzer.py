# voice_calibration/calibration/functionality/speech_profile_analyzer.py

"""
Phase 1 analysis: split the probability distribution into ambient and speech
populations with Otsu's method and derive detection thresholds.
"""

import math
from typing import Optional, Sequence

import numpy as np
import structlog

from ..models import (
    CalibrationConfig,
    HISTOGRAM_BINS,
    Phase1Result,
    ProbabilitySample,
    THRESHOLD_STEP
)

logger = structlog.get_logger()


def snap_threshold(value: float) -> float:
    """
    Zaokrouhli threshold na nejbližší násobek 0.05 (half-up).
    """
    steps = 1.0 / THRESHOLD_STEP
    return round(math.floor(value * steps + 0.5) / steps, 2)


def _bin_indices(values: np.ndarray, bins: int) -> np.ndarray:
    """Histogram bin of every value; 1.0 lands in the last bin."""
    return np.clip(np.floor(values * bins).astype(np.int64), 0, bins - 1)


def otsu_split(values: np.ndarray, bins: int = HISTOGRAM_BINS) -> float:
    """
    Otsu's method on an equal-width histogram over [0, 1].

    Args:
        values: Probabilities in [0, 1]
        bins: Number of histogram bins

    Returns:
        Split point (centre of the winning bin)
    """
    return (otsu_bin(values, bins) + 0.5) / bins


def otsu_bin(values: np.ndarray, bins: int = HISTOGRAM_BINS) -> int:
    """
    Index of the last background bin chosen by Otsu's method.

    Maximizes between-class variance over every candidate boundary bin;
    the first maximum wins on ties. Without any valid boundary (empty input
    or a single populated bin) the first bin is returned.
    """
    if values.size == 0:
        return 0

    histogram = np.bincount(_bin_indices(values, bins), minlength=bins).astype(np.float64)

    levels = np.arange(bins, dtype=np.float64)
    total = histogram.sum()
    sum_all = float(np.dot(levels, histogram))

    weight_bg = np.cumsum(histogram)
    sum_bg = np.cumsum(levels * histogram)
    weight_fg = total - weight_bg

    valid = (weight_bg > 0) & (weight_fg > 0)
    with np.errstate(divide="ignore", invalid="ignore"):
        mean_bg = sum_bg / weight_bg
        mean_fg = (sum_all - sum_bg) / weight_fg
        variance = weight_bg * weight_fg * (mean_bg - mean_fg) ** 2

    variance = np.where(valid, variance, -1.0)
    return int(np.argmax(variance))  # argmax = first maximum


def _percentile(sorted_values: np.ndarray, fraction: float) -> float:
    """Nearest-rank percentile: index floor(fraction * n), clamped."""
    index = min(max(int(math.floor(fraction * sorted_values.size)), 0), sorted_values.size - 1)
    return float(sorted_values[index])


def _degenerate_result(
        samples: Sequence[ProbabilitySample],
        config: CalibrationConfig,
        ambient_ceiling: float,
        split_point: float
) -> Phase1Result:
    """Fallback defaults when no separable speech was found."""
    return Phase1Result(
        samples=tuple(samples),
        positive_threshold=config.default_positive_threshold,
        negative_threshold=config.default_negative_threshold,
        ambient_ceiling=ambient_ceiling,
        speech_floor=config.default_speech_floor,
        no_speech_detected=True,
        split_point=split_point
    )


def analyze_speech_profile(
        samples: Sequence[ProbabilitySample],
        config: Optional[CalibrationConfig] = None
) -> Phase1Result:
    """
    Classify Phase 1 samples into ambient/speech populations and derive thresholds.

    Pure and total: empty or unimodal input yields the default thresholds with
    no_speech_detected=True instead of raising.

    Args:
        samples: Samples collected while the user spoke after a brief pause
        config: Calibration constants

    Returns:
        Phase1Result
    """
    config = config or CalibrationConfig()

    if not samples:
        logger.info("phase1_no_samples")
        return _degenerate_result(samples, config, ambient_ceiling=0.0, split_point=0.0)

    values = np.fromiter((s.probability for s in samples), dtype=np.float64, count=len(samples))
    best_bin = otsu_bin(values)
    split_point = (best_bin + 0.5) / HISTOGRAM_BINS

    # Celý vítězný bin patří k ambientu, stejně jako v Otsuově histogramu
    in_ambient = _bin_indices(values, HISTOGRAM_BINS) <= best_bin
    ambient = values[in_ambient]
    speech = values[~in_ambient]
    ambient_max = float(ambient.max()) if ambient.size else 0.0

    spread = float(values.max() - values.min())
    if speech.size == 0 or spread < config.min_cluster_mean_gap:
        logger.info(
            "phase1_single_population",
            ambient=int(ambient.size),
            speech=int(speech.size),
            spread=round(spread, 3),
            split_point=round(split_point, 3)
        )
        return _degenerate_result(samples, config, ambient_ceiling=ambient_max, split_point=split_point)

    # Empty ambient cluster counts as silence at 0.0
    ambient_mean = float(ambient.mean()) if ambient.size else 0.0
    mean_gap = float(speech.mean()) - ambient_mean
    if mean_gap < config.min_cluster_mean_gap:
        logger.info(
            "phase1_clusters_not_separable",
            mean_gap=round(mean_gap, 3),
            min_gap=config.min_cluster_mean_gap
        )
        return _degenerate_result(samples, config, ambient_ceiling=ambient_max, split_point=split_point)

    # Robustní odhady - ignoruj přechodové hodnoty na okrajích clusterů
    speech_floor = _percentile(np.sort(speech), config.speech_floor_percentile)
    ambient_ceiling = _percentile(np.sort(ambient), config.ambient_ceiling_percentile) if ambient.size else 0.0

    candidate = ambient_ceiling + config.threshold_bias * (speech_floor - ambient_ceiling)
    candidate = min(max(candidate, config.min_candidate_threshold), config.max_candidate_threshold)

    positive = snap_threshold(candidate)
    negative = snap_threshold(max(positive - config.hysteresis, config.min_negative_threshold))

    result = Phase1Result(
        samples=tuple(samples),
        positive_threshold=positive,
        negative_threshold=negative,
        ambient_ceiling=ambient_ceiling,
        speech_floor=speech_floor,
        no_speech_detected=False,
        split_point=split_point
    )

    logger.info(
        "phase1_analyzed",
        samples=len(samples),
        split_point=round(split_point, 3),
        ambient_ceiling=round(ambient_ceiling, 3),
        speech_floor=round(speech_floor, 3),
        positive_threshold=positive,
        negative_threshold=negative
    )

    return result
