# release_deployer/utils/async_utils.py
"""Asynchronous operation utilities"""

import asyncio
import functools
import logging
import signal
from typing import Any, Callable, Coroutine, Iterable, TypeVar

T = TypeVar('T')

logger = logging.getLogger(__name__)

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run async coroutine in sync context

    Args:
        coro: Coroutine to run

    Returns:
        Coroutine result
    """
    return asyncio.run(coro)


def run_cancellable(coro: Coroutine[Any, Any, T],
                    signals: Iterable[signal.Signals] = TERMINATION_SIGNALS) -> T:
    """
    Run a coroutine, cancelling it when a termination signal arrives

    Cancellation unwinds through the coroutine's ``finally`` blocks and async
    context managers, so scoped resources are released before the process
    exits. The CancelledError is re-raised to the caller.

    Args:
        coro: Coroutine to run
        signals: Signals that cancel the run

    Returns:
        Coroutine result
    """

    async def _main() -> T:
        loop = asyncio.get_running_loop()
        task = asyncio.current_task()
        installed = []

        def _cancel(signum: signal.Signals) -> None:
            logger.warning("Received %s, cancelling", signum.name)
            task.cancel()

        for signum in signals:
            try:
                loop.add_signal_handler(signum, _cancel, signum)
                installed.append(signum)
            except (NotImplementedError, RuntimeError, ValueError):
                # Not supported on this platform or outside the main thread
                pass

        try:
            return await coro
        finally:
            for signum in installed:
                loop.remove_signal_handler(signum)

    return asyncio.run(_main())


def sync_to_async(func: Callable[..., T]) -> Callable[..., Coroutine[Any, Any, T]]:
    """
    Decorator to convert sync function to async

    Args:
        func: Sync function

    Returns:
        Async wrapper function
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))

    return wrapper
