# voice_calibration/calibration/functionality/timeout_wrapper.py

"""Deadline for awaited collaborator operations (calibration playback)"""

import asyncio
from typing import Awaitable, Callable, Optional, Type, TypeVar

import structlog

from voice_calibration.core.exceptions import PlaybackTimeoutError

logger = structlog.get_logger()

T = TypeVar('T')


async def with_timeout(
        awaitable: Awaitable[T],
        timeout: float,
        name: str = "playback",
        on_timeout: Optional[Callable[[], None]] = None,
        error: Type[Exception] = PlaybackTimeoutError
) -> T:
    """
    Await collaborator operation with a deadline.

    The awaited operation is cancelled on expiry; on_timeout lets the caller
    preempt the collaborator itself (e.g. stop audio output) before the error
    propagates.

    Raises:
        error: If the deadline expired
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("operation_timeout", name=name, timeout_s=timeout)
        if on_timeout is not None:
            on_timeout()
        raise error(f"{name} did not finish within {timeout}s") from None
