# voice_calibration/calibration/functionality/scoped_override.py

"""Save -> override -> restore primitive for temporarily forced settings."""

import asyncio
import inspect
from typing import Any, Callable, Set

import structlog

logger = structlog.get_logger()


class ScopedOverride:
    """
    Dočasné přepsání jedné hodnoty s garantovaným návratem.

    acquire(current, override) remembers the value seen before the override
    and applies the override only when it differs. restore() writes the saved
    value back exactly once; further calls are no-ops.
    """

    def __init__(self, name: str, setter: Callable[[Any], Any]):
        """
        Args:
            name: Override name for logging (e.g. "listening")
            setter: Applies a value; may return an awaitable
        """
        self.name = name
        self._setter = setter
        self._active = False
        self._forced = False
        self._saved: Any = None
        self._pending: Set[asyncio.Future] = set()

    @property
    def active(self) -> bool:
        """Drží override uloženou hodnotu?"""
        return self._active

    @property
    def forced(self) -> bool:
        """Byla hodnota skutečně přepsána?"""
        return self._forced

    @property
    def saved_value(self) -> Any:
        """Hodnota před acquire()."""
        return self._saved

    @property
    def pending_restores(self) -> int:
        """Počet asynchronních zápisů po restore(), které ještě běží."""
        return len(self._pending)

    async def acquire(self, current: Any, override: Any) -> bool:
        """
        Save current value and force override.

        Args:
            current: Value observed before the override
            override: Value to force

        Returns:
            True if the setter was called (value differed)
        """
        if self._active:
            logger.debug("override_already_held", name=self.name, saved=self._saved)
            return self._forced

        self._saved = current
        if current == override:
            self._active = True
            self._forced = False
            return False

        result = self._setter(override)
        if inspect.isawaitable(result):
            await result

        # Mark only after the setter succeeded - nothing to revert otherwise
        self._active = True
        self._forced = True
        logger.debug("override_acquired", name=self.name, saved=current, override=override)
        return True

    def restore(self) -> bool:
        """
        Vrať uloženou hodnotu.

        Returns:
            True if the saved value was written back
        """
        if not self._active:
            return False

        forced = self._forced
        saved = self._saved
        self._active = False
        self._forced = False
        self._saved = None

        if not forced:
            return False

        result = self._setter(saved)
        if inspect.isawaitable(result):
            # restore() je synchronní; zápis doběhne na pozadí
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(self._on_restore_done)

        logger.debug("override_restored", name=self.name, value=saved)
        return True

    def _on_restore_done(self, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("override_restore_cancelled", name=self.name)
            return

        error = task.exception()
        if error is not None:
            logger.error("override_restore_failed", name=self.name, error=str(error))
