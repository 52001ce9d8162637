"""Shared fixtures - fake collaborators for the calibration engine"""

import pytest

from voice_calibration.calibration import CalibrationConfig, CalibrationEngine
from voice_calibration.calibration.functionality import Sampler
from voice_calibration.core.ports import INTERRUPTION_ENABLED

from fakes import (
    FakePlayback,
    FakeProbabilitySource,
    FakeRecognizer,
    FakeSettingsSink,
    step_clock
)


@pytest.fixture
def source():
    return FakeProbabilitySource(value=0.05, processing=False)


@pytest.fixture
def recognizer():
    return FakeRecognizer(listening=False)


@pytest.fixture
def playback():
    return FakePlayback()


@pytest.fixture
def settings_sink():
    return FakeSettingsSink({INTERRUPTION_ENABLED: True})


@pytest.fixture
def config():
    return CalibrationConfig(tick_interval_ms=1.0, playback_timeout_s=5.0)


@pytest.fixture
def engine(source, recognizer, playback, settings_sink, config):
    sampler = Sampler(tick_interval_ms=config.tick_interval_ms, clock=step_clock(10.0))
    return CalibrationEngine(
        source=source,
        recognizer=recognizer,
        playback=playback,
        settings=settings_sink,
        config=config,
        sampler=sampler
    )
