"""
Background token sweeper — periodically purges expired tokens.

Runs outside any request; read paths already treat tokens past
``expires_at`` as invalid, so sweep timing never affects correctness.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.stores.token_store import TokenStore

logger = logging.getLogger(__name__)


class TokenSweeper:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], interval_seconds: float) -> None:
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None
        self._stopping = asyncio.Event()

    async def run_once(self) -> int:
        async with self.session_factory() as session:
            return await TokenStore(session).expire_tokens()

    async def _loop(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
                return
            except asyncio.TimeoutError:
                pass
            try:
                await self.run_once()
            except Exception as e:
                logger.error("Token sweep failed: %s", e, exc_info=True)

    def start(self) -> None:
        if self.interval_seconds <= 0:
            logger.info("Token sweeper disabled")
            return
        if self._task is None:
            self._stopping.clear()
            self._task = asyncio.create_task(self._loop(), name="token-sweeper")
            logger.info("Token sweeper running every %ss", self.interval_seconds)

    async def stop(self) -> None:
        """Let an in-flight sweep finish, then end the loop."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
