"""First-settled-wins racing of two awaitables.

Used to bound the OCR call with a timer. Python threads cannot be killed, so
the losing operation is abandoned rather than cancelled: its task keeps
running and whatever it eventually produces (result or exception) is
discarded.
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from .errors import OcrTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _discard_outcome(task: "asyncio.Future") -> None:
    """Retrieve an abandoned task's exception so asyncio does not report it."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Abandoned operation finished with {type(exc).__name__}: {exc}")
    else:
        logger.debug("Abandoned operation finished, result discarded")


async def first_settled(primary: Awaitable[T], timer: Awaitable) -> T:
    """
    Await whichever of ``primary`` and ``timer`` settles first.
    
    If ``primary`` settles first (or both settle together) its result is
    returned, or its exception re-raised, and the timer is cancelled.
    If ``timer`` settles first its outcome is propagated (a timer normally
    raises) and ``primary`` is left running in the background.
    
    Args:
        primary: The operation being bounded
        timer: An awaitable that settles when the bound expires
        
    Returns:
        The primary operation's result
    """
    primary_task = asyncio.ensure_future(primary)
    timer_task = asyncio.ensure_future(timer)
    
    try:
        done, _ = await asyncio.wait(
            {primary_task, timer_task},
            return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        timer_task.cancel()
        primary_task.add_done_callback(_discard_outcome)
        raise
    
    if primary_task in done:
        timer_task.cancel()
        return primary_task.result()
    
    primary_task.add_done_callback(_discard_outcome)
    # Timer won; a well-behaved timer raises here
    return await timer_task


async def timeout_timer(seconds: float, what: str = "operation") -> None:
    """Sleep for ``seconds`` then raise :class:`OcrTimeoutError`."""
    await asyncio.sleep(seconds)
    raise OcrTimeoutError(f"{what} timed out after {seconds:g}s")


async def run_with_timeout(primary: Awaitable[T], seconds: float, what: str = "operation") -> T:
    """Race ``primary`` against a timer of ``seconds``."""
    return await first_settled(primary, timeout_timer(seconds, what))
