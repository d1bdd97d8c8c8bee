"""Shared plumbing for the SQL-backed stores."""
from __future__ import annotations

import asyncio
from typing import Any

from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..errors import TransientStoreError

# Failures a caller can reasonably retry: timeouts, dropped or exhausted
# connections.
TRANSIENT_ERRORS = (
    asyncio.TimeoutError,
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.TimeoutError,
)


class Store:
    """Base class wrapping every statement in a bounded timeout."""

    def __init__(self, session: AsyncSession, timeout: float | None = None) -> None:
        self.session = session
        self.timeout = timeout if timeout is not None else get_settings().db_query_timeout

    async def _bounded(self, awaitable) -> Any:
        try:
            return await asyncio.wait_for(awaitable, self.timeout)
        except TRANSIENT_ERRORS as exc:
            await self._discard()
            raise TransientStoreError() from exc

    async def execute(self, statement) -> Result:
        return await self._bounded(self.session.execute(statement))

    async def commit(self) -> None:
        await self._bounded(self.session.commit())

    async def rollback(self) -> None:
        await self.session.rollback()

    async def _discard(self) -> None:
        try:
            await self.session.rollback()
        except sa_exc.SQLAlchemyError:
            # The connection is already unusable; the session is closed at
            # the end of the request either way.
            pass
