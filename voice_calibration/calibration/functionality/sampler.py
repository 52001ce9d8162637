# voice_calibration/calibration/functionality/sampler.py

"""Periodic probability sampler running as a cancellable asyncio task."""

import asyncio
import time
from typing import Callable, List, Optional, Tuple

import structlog

from voice_calibration.core.exceptions import SamplerError
from voice_calibration.core.ports import ISpeechProbabilitySource
from ..models import ProbabilitySample

logger = structlog.get_logger()


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.perf_counter() * 1000.0


class SamplingHandle:
    """Handle na běžící sampling task."""

    def __init__(self, task: asyncio.Task):
        self._task = task

    @property
    def active(self) -> bool:
        """Běží ještě sampling?"""
        return not self._task.done()

    def close(self) -> None:
        """
        Zastav sampling.
        Task is suspended between ticks, so no further sample is appended after this returns.
        """
        if not self._task.done():
            self._task.cancel()


class Sampler:
    """
    Sbírá VAD pravděpodobnosti jednou za tick do append-only bufferu.

    Never blocks: the loop suspends only between ticks. At most one
    sampling run is active per sampler.
    """

    def __init__(
            self,
            tick_interval_ms: float = 16.0,
            clock: Optional[Callable[[], float]] = None
    ):
        """
        Args:
            tick_interval_ms: Pause between two readings (ms), 0 = every loop iteration
            clock: Monotonic clock returning milliseconds
        """
        self.tick_interval_ms = tick_interval_ms
        self._clock = clock or monotonic_ms
        self._samples: List[ProbabilitySample] = []
        self._handle: Optional[SamplingHandle] = None
        self._failed_reads = 0

    @property
    def is_active(self) -> bool:
        """Je sampler aktivní?"""
        return self._handle is not None and self._handle.active

    @property
    def sample_count(self) -> int:
        """Počet nasbíraných samples v aktuálním běhu."""
        return len(self._samples)

    def start(self, source: ISpeechProbabilitySource) -> SamplingHandle:
        """
        Start sampling loop on the running event loop.

        Args:
            source: Live probability source

        Returns:
            Handle of the running sampling task

        Raises:
            SamplerError: If a sampling run is already active
        """
        if self.is_active:
            raise SamplerError("Sampler is already running")

        self._samples = []
        self._failed_reads = 0

        task = asyncio.get_running_loop().create_task(self._run(source, self._samples))
        self._handle = SamplingHandle(task)

        logger.debug("sampler_started", tick_interval_ms=self.tick_interval_ms)
        return self._handle

    def stop(self) -> Tuple[ProbabilitySample, ...]:
        """
        Zastav sampling a vrať kopii nasbíraných samples.
        Internal buffer is cleared; calling stop() on an idle sampler returns ().
        """
        if self._handle is not None:
            self._handle.close()
            self._handle = None

        samples = tuple(self._samples)
        self._samples = []

        logger.debug(
            "sampler_stopped",
            samples=len(samples),
            failed_reads=self._failed_reads
        )
        return samples

    async def _run(self, source: ISpeechProbabilitySource, samples: List[ProbabilitySample]) -> None:
        """Tick loop - jeden sample za tick."""
        interval = self.tick_interval_ms / 1000.0

        while True:
            try:
                probability = float(source.current())
            except Exception as e:
                self._failed_reads += 1
                logger.warning("probability_read_failed", error=str(e))
            else:
                timestamp = self._clock()
                # Order must never be violated, even with a misbehaving clock
                if samples and timestamp < samples[-1].timestamp:
                    timestamp = samples[-1].timestamp
                samples.append(ProbabilitySample(probability=probability, timestamp=timestamp))

            await asyncio.sleep(interval)

    def get_statistics(self) -> dict:
        """Vrať statistiky aktuálního běhu."""
        samples = self._samples
        duration_ms = samples[-1].timestamp - samples[0].timestamp if len(samples) > 1 else 0.0
        mean_interval_ms = duration_ms / (len(samples) - 1) if len(samples) > 1 else 0.0

        return {
            'active': self.is_active,
            'samples': len(samples),
            'duration_ms': round(duration_ms, 1),
            'mean_interval_ms': round(mean_interval_ms, 2),
            'tick_interval_ms': self.tick_interval_ms,
            'failed_reads': self._failed_reads
        }
