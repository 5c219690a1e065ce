"""Mutexes keyed by employee and period around check-then-create."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import date
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payroll_sync.database import acquire_advisory_lock, release_advisory_lock


def timesheet_lock_key(employee_id: str, start: date, end: date) -> str:
    return f"timesheet:{employee_id}:{start.isoformat()}:{end.isoformat()}"


class SyncLock(Protocol):
    def hold(self, key: str) -> AbstractAsyncContextManager[None]:
        ...


class KeyedLock:
    """In-process lock per key; serializes runs sharing an event loop."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]


class AdvisoryLock:
    """PostgreSQL advisory lock per key; serializes runs across processes.

    The lock is session-level, so acquire and release run on the same
    session (and connection) for the lifetime of the block.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        async with self.session_factory() as session:
            await acquire_advisory_lock(session, key)
            try:
                yield
            finally:
                await release_advisory_lock(session, key)
                await session.commit()
