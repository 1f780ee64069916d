"""OperationLog repository for vizgen."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vizgen.models.operation_log import OperationLog


class OperationLogRepository:
    """Repository for the user operation audit trail."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, entry: OperationLog) -> OperationLog:
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def list_for_user(self, user_id: int, limit: int = 50) -> list[OperationLog]:
        """Most recent entries for a user, newest first."""
        result = await self.session.execute(
            select(OperationLog)
            .where(OperationLog.user_id == user_id)  # type: ignore[arg-type]
            .order_by(OperationLog.created_at.desc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        return list(result.scalars().all())
