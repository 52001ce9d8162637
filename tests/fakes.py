"""Fake collaborators and helpers for the calibration engine tests"""

import asyncio
import itertools
from typing import Any, Dict, List, Optional, Tuple

from voice_calibration.calibration.functionality import Sampler
from voice_calibration.core.ports import (
    IRecognizerControl,
    ISettingsSink,
    ISpeechPlayback,
    ISpeechProbabilitySource
)


class FakeProbabilitySource(ISpeechProbabilitySource):
    """Probability source driven by the test."""

    def __init__(self, value: float = 0.0, processing: bool = False):
        self.value = value
        self.processing = processing
        self.reads = 0
        self.resume_calls = 0
        self.pause_calls = 0

    def current(self) -> float:
        self.reads += 1
        return self.value

    def is_processing(self) -> bool:
        return self.processing

    def resume_processing(self):
        self.resume_calls += 1
        self.processing = True

    def pause_processing(self):
        self.pause_calls += 1
        self.processing = False


class FakeRecognizer(IRecognizerControl):
    """Recognizer with optional delayed or failing start."""

    def __init__(self, listening: bool = False, fail: Optional[Exception] = None):
        self.listening = listening
        self.fail = fail
        self.gate: Optional[asyncio.Event] = None
        self.start_calls = 0
        self.stop_calls = 0

    def is_listening(self) -> bool:
        return self.listening

    async def start_listening(self):
        self.start_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail is not None:
            raise self.fail
        self.listening = True

    def stop_listening(self):
        self.stop_calls += 1
        self.listening = False


class FakePlayback(ISpeechPlayback):
    """Playback that finishes when the test calls complete() or cancel()."""

    def __init__(self, fail: Optional[Exception] = None):
        self.fail = fail
        self.spoken: List[Tuple[str, float]] = []
        self.cancel_calls = 0
        self._done: Optional[asyncio.Event] = None

    async def speak(self, text: str, rate: float = 1.0):
        self.spoken.append((text, rate))
        if self.fail is not None:
            raise self.fail
        self._done = asyncio.Event()
        await self._done.wait()

    def complete(self):
        if self._done is not None:
            self._done.set()

    def cancel(self):
        self.cancel_calls += 1
        self.complete()


class FakeSettingsSink(ISettingsSink):
    """In-memory settings with write history."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.values: Dict[str, Any] = dict(initial or {})
        self.history: List[Tuple[str, Any]] = []

    def update_parameter(self, key: str, value: Any):
        self.history.append((key, value))
        self.values[key] = value

    def get_parameter(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)


def step_clock(step_ms: float = 10.0):
    """Deterministic clock advancing step_ms per reading."""
    counter = itertools.count(0.0, step_ms)
    return lambda: next(counter)


async def wait_for_samples(sampler: Sampler, count: int, timeout: float = 2.0) -> None:
    """Wait until the active sampling run holds at least count samples."""
    async def _poll():
        while sampler.sample_count < count:
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout=timeout)


async def wait_for_playback(playback: FakePlayback, count: int = 1, timeout: float = 2.0) -> None:
    """Wait until speak() has been entered count times."""
    async def _poll():
        while len(playback.spoken) < count:
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout=timeout)
