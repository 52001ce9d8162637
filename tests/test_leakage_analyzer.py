"""Tests for Phase 2 leakage analysis (spike detection + min speech start)"""

import numpy as np
import pytest

from voice_calibration.calibration.functionality import (
    analyze_leakage,
    detect_spikes,
    recommend_min_speech_start
)
from voice_calibration.calibration.models import CalibrationConfig, ProbabilitySample


def make_run(segments, step_ms=10.0):
    """Build samples from (probability, duration_ms) segments."""
    samples = []
    t = 0.0
    for probability, duration in segments:
        for _ in range(int(duration // step_ms)):
            samples.append(ProbabilitySample(probability=probability, timestamp=t))
            t += step_ms
    return samples


class TestDetectSpikes:

    def test_single_spike_duration(self):
        samples = make_run([(0.1, 100), (0.9, 300), (0.1, 100)])
        spikes = detect_spikes(samples, threshold=0.6)

        assert len(spikes) == 1
        assert spikes[0].start_time == pytest.approx(100.0)
        assert spikes[0].duration == pytest.approx(300.0)
        assert spikes[0].peak_probability == pytest.approx(0.9)

    def test_run_to_end_closes_at_last_sample(self):
        samples = make_run([(0.1, 100), (0.8, 200)])
        spikes = detect_spikes(samples, threshold=0.6)

        assert len(spikes) == 1
        assert spikes[0].end_time == pytest.approx(samples[-1].timestamp)
        assert spikes[0].duration == pytest.approx(190.0)

    def test_short_spikes_are_noise(self):
        samples = make_run([(0.1, 50), (0.9, 10), (0.1, 50)])

        assert detect_spikes(samples, threshold=0.6) == []

    def test_spike_just_over_noise_limit_is_kept(self):
        samples = make_run([(0.1, 50), (0.9, 20), (0.1, 50)])
        spikes = detect_spikes(samples, threshold=0.6)

        assert len(spikes) == 1
        assert spikes[0].duration == pytest.approx(20.0)

    def test_probability_equal_to_threshold_qualifies(self):
        samples = make_run([(0.1, 50), (0.6, 100), (0.1, 50)])

        assert len(detect_spikes(samples, threshold=0.6)) == 1

    def test_peak_tracks_maximum(self):
        samples = make_run([(0.1, 50), (0.7, 50), (0.95, 20), (0.65, 50), (0.1, 50)])
        spikes = detect_spikes(samples, threshold=0.6)

        assert len(spikes) == 1
        assert spikes[0].peak_probability == pytest.approx(0.95)

    def test_multiple_spikes_are_ordered_and_disjoint(self):
        samples = make_run([(0.1, 50), (0.9, 100), (0.1, 50), (0.9, 200), (0.1, 50)])
        spikes = detect_spikes(samples, threshold=0.6)

        assert [round(s.duration) for s in spikes] == [100, 200]
        assert spikes[0].end_time <= spikes[1].start_time


class TestRecommendMinSpeechStart:

    @pytest.mark.parametrize("max_spike,expected", [
        (100.0, 160),  # 100 + 50 -> 150 -> 160
        (300.0, 416),  # 300 + 90 -> 390 -> 416
        (600.0, 800),  # 600 + 180 -> 780 -> 800
    ])
    def test_margin_and_frame_snap(self, max_spike, expected):
        assert recommend_min_speech_start(max_spike, CalibrationConfig()) == expected

    def test_no_leakage_keeps_default(self):
        assert recommend_min_speech_start(0.0, CalibrationConfig()) == 150


class TestAnalyzeLeakage:

    def test_moderate_leakage(self):
        """300 ms run at 0.9 against threshold 0.6."""
        samples = make_run([(0.1, 200), (0.9, 300), (0.1, 200)])
        result = analyze_leakage(samples, threshold=0.6)

        assert len(result.spikes) == 1
        assert result.max_spike_duration == pytest.approx(300.0)
        assert result.recommended_min_speech_start_ms == 416
        assert result.recommend_disable_interruption is False

    def test_heavy_leakage_recommends_disabling_interruption(self):
        """600 ms run above threshold."""
        samples = make_run([(0.1, 200), (0.9, 600), (0.1, 200)])
        result = analyze_leakage(samples, threshold=0.6)

        assert result.max_spike_duration == pytest.approx(600.0)
        assert result.recommend_disable_interruption is True
        assert result.recommended_min_speech_start_ms == 800

    def test_spike_at_limit_keeps_interruption(self):
        samples = make_run([(0.1, 100), (0.9, 500), (0.1, 100)])
        result = analyze_leakage(samples, threshold=0.6)

        assert result.recommend_disable_interruption is False

    def test_empty_input(self):
        result = analyze_leakage([], threshold=0.5)

        assert result.spikes == ()
        assert result.max_spike_duration == 0.0
        assert result.recommended_min_speech_start_ms == 150
        assert result.recommend_disable_interruption is False

    def test_clean_playback_has_no_spikes(self):
        result = analyze_leakage(make_run([(0.2, 1000)]), threshold=0.5)

        assert result.spikes == ()
        assert result.recommended_min_speech_start_ms == 150

    def test_configurable_limits(self):
        config = CalibrationConfig(interruption_spike_limit_ms=200.0, min_spike_margin_ms=100.0)
        samples = make_run([(0.1, 100), (0.9, 300), (0.1, 100)])
        result = analyze_leakage(samples, threshold=0.6, config=config)

        # 300 + 100 -> 400 -> 416
        assert result.recommended_min_speech_start_ms == 416
        assert result.recommend_disable_interruption is True

    @pytest.mark.parametrize("seed", range(30))
    def test_recommendation_invariants_hold_for_random_input(self, seed):
        rng = np.random.default_rng(seed)
        values = rng.choice([0.05, 0.3, 0.7, 0.95], size=rng.integers(0, 300))
        samples = make_run([(float(v), 16) for v in values], step_ms=16.0)

        result = analyze_leakage(samples, threshold=0.6)

        assert result.recommended_min_speech_start_ms > 0
        if result.spikes:
            assert result.recommended_min_speech_start_ms % 32 == 0
            assert result.recommended_min_speech_start_ms >= result.max_spike_duration + 50
        for spike in result.spikes:
            assert spike.duration > 10.0
            assert spike.end_time >= spike.start_time
        for earlier, later in zip(result.spikes, result.spikes[1:]):
            assert earlier.end_time <= later.start_time
