"""OperationLog entity - audit trail of user actions on jobs."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from vizgen.core.timezone import utc_now


class OperationLog(SQLModel, table=True):
    """OperationLog records who did what to which resource."""

    __tablename__ = "operation_logs"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: int = Field(index=True)
    operation: str = Field(max_length=32)  # "GENERATE", "VIEW"
    resource_type: str = Field(max_length=32)
    resource_id: Optional[str] = Field(default=None, max_length=64)
    details: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    created_at: datetime = Field(default_factory=utc_now)
