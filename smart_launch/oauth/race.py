"""First-success race over cancellable discovery tasks."""

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any

from ..transport.abort import AbortController
from ..utils.errors import DiscoveryError

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryTask:
    """A pending discovery request paired with the controller that cancels it."""

    controller: AbortController
    awaitable: Awaitable[Any]
    complete: bool = False


async def any_success(tasks: list[DiscoveryTask]) -> Any:
    """Return the result of the first task that succeeds.

    Works like ``Promise.any()``: every other still-pending task is aborted
    once a winner is known. If several tasks finish in the same loop
    iteration, the first successful one in task order wins.

    Raises:
        DiscoveryError: If every task fails. The message joins the individual
            messages with "; " in task order.
    """
    futures = [asyncio.ensure_future(task.awaitable) for task in tasks]
    pending = set(futures)

    try:
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)

            for task, future in zip(tasks, futures):
                if future in done:
                    task.complete = True

            winner = next(
                (
                    future
                    for future in futures
                    if future in done and not future.cancelled() and future.exception() is None
                ),
                None,
            )
            if winner is not None:
                _abort_pending(tasks)
                return winner.result()

        errors: list[BaseException] = [
            asyncio.CancelledError("cancelled") if future.cancelled() else future.exception()
            for future in futures
        ]
        raise DiscoveryError("; ".join(str(e) for e in errors), errors=errors)

    finally:
        losers = [future for future in futures if not future.done()]
        for future in losers:
            future.cancel()
        if losers:
            # Reap the cancelled tasks so none are left running or unretrieved
            await asyncio.gather(*losers, return_exceptions=True)


def _abort_pending(tasks: list[DiscoveryTask]) -> None:
    for task in tasks:
        if task.complete:
            continue
        try:
            task.controller.abort()
        except Exception as e:
            logger.debug(f"Ignoring failure to abort discovery task: {e}")
