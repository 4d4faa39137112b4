"""Bounded retry with linear backoff for transient transport failures."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from loguru import logger

from ..models.request import RetryPolicy
from .transport import RawResponse, TransportError

Sleep = Callable[[float], Awaitable[None]]


class RetryExecutor:
    """Run a transport call, repeating it only on transient failures.

    HTTP error statuses are responses, not failures, and pass straight
    through.  Non-transient :class:`TransportError` is raised on the first
    occurrence; a transient one is raised unchanged once
    ``policy.max_attempts`` is used up.
    """

    def __init__(self, sleep: Sleep = asyncio.sleep) -> None:
        self._sleep = sleep

    async def execute(
        self,
        call: Callable[[], Awaitable[RawResponse]],
        policy: RetryPolicy,
    ) -> RawResponse:
        attempt = 1
        while True:
            try:
                return await call()
            except TransportError as exc:
                if not exc.transient or attempt >= policy.max_attempts:
                    raise
                delay = policy.delay_before(attempt + 1)
                logger.warning(
                    f"Transient {exc.kind.value} error on attempt {attempt}/"
                    f"{policy.max_attempts}, retrying in {delay:g}s: {exc}"
                )
                await self._sleep(delay)
                attempt += 1
