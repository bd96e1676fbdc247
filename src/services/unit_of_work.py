"""
Toreca Tracker — Unit of Work

Groups several writes into one transaction: either all of them commit or
none do. Used wherever a handler would otherwise issue two independent
writes (e.g. an inventory update plus its history row).
"""

from __future__ import annotations

from types import TracebackType

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger(__name__)


class UnitOfWork:
    """
    Async context manager around an AsyncSession transaction.

    Usage:
        async with UnitOfWork(session) as uow:
            uow.session.add(row_a)
            uow.session.add(row_b)
        # committed here; rolled back if the block raised

    The session must not already be inside a transaction that the caller
    intends to keep open.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self) -> UnitOfWork:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            await self.session.commit()
            return

        await self.session.rollback()
        logger.warning(
            "unit_of_work_rolled_back",
            error=str(exc),
            error_type=exc_type.__name__,
        )
