"""Tests for the save/override/restore primitive"""

import asyncio

import pytest
from structlog.testing import capture_logs

from voice_calibration.calibration.functionality import ScopedOverride


class Recorder:
    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def __call__(self, value):
        if value == self.fail_on:
            raise RuntimeError(f"cannot set {value}")
        self.calls.append(value)


class AsyncRecorder(Recorder):
    async def _apply(self, value):
        await asyncio.sleep(0)
        super().__call__(value)

    def __call__(self, value):
        return self._apply(value)


@pytest.mark.asyncio
async def test_forces_and_restores_differing_value():
    setter = Recorder()
    override = ScopedOverride("interruption_enabled", setter)

    assert await override.acquire(True, False) is True
    assert override.active and override.forced
    assert override.saved_value is True

    assert override.restore() is True
    assert setter.calls == [False, True]
    assert override.active is False


@pytest.mark.asyncio
async def test_matching_value_is_not_touched():
    setter = Recorder()
    override = ScopedOverride("listening", setter)

    assert await override.acquire(True, True) is False
    assert override.active is True
    assert override.forced is False

    assert override.restore() is False
    assert setter.calls == []


@pytest.mark.asyncio
async def test_restore_is_idempotent():
    setter = Recorder()
    override = ScopedOverride("listening", setter)
    await override.acquire(False, True)

    override.restore()
    override.restore()

    assert setter.calls == [True, False]


def test_restore_without_acquire_is_noop():
    setter = Recorder()
    override = ScopedOverride("listening", setter)

    assert override.restore() is False
    assert setter.calls == []


@pytest.mark.asyncio
async def test_second_acquire_keeps_first_saved_value():
    setter = Recorder()
    override = ScopedOverride("processing", setter)
    await override.acquire(False, True)

    await override.acquire(True, True)
    override.restore()

    assert setter.calls == [True, False]


@pytest.mark.asyncio
async def test_failed_setter_leaves_nothing_to_restore():
    setter = Recorder(fail_on=True)
    override = ScopedOverride("listening", setter)

    with pytest.raises(RuntimeError):
        await override.acquire(False, True)

    assert override.active is False
    assert override.restore() is False


@pytest.mark.asyncio
async def test_awaitable_setter():
    setter = AsyncRecorder()
    override = ScopedOverride("listening", setter)

    await override.acquire(False, True)
    assert setter.calls == [True]

    override.restore()
    await asyncio.sleep(0.01)

    assert setter.calls == [True, False]
    assert override.pending_restores == 0


@pytest.mark.asyncio
async def test_failed_awaitable_restore_is_logged():
    setter = AsyncRecorder(fail_on=True)
    override = ScopedOverride("interruption_enabled", setter)
    await override.acquire(True, False)

    with capture_logs() as logs:
        assert override.restore() is True
        assert override.pending_restores == 1
        await asyncio.sleep(0.01)

    assert override.pending_restores == 0
    assert setter.calls == [False]
    failures = [entry for entry in logs if entry['event'] == 'override_restore_failed']
    assert len(failures) == 1
    assert failures[0]['name'] == 'interruption_enabled'
    assert failures[0]['log_level'] == 'error'
    assert "cannot set True" in failures[0]['error']
