"""Template entity - reusable prompt presets offered to users."""

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from vizgen.core.timezone import utc_now


class Template(SQLModel, table=True):
    """Template is a prompt preset; jobs reference it and bump its usage count."""

    __tablename__ = "templates"  # type: ignore[assignment]

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=255)
    prompt: str = Field(max_length=2000)
    modality: str = Field(default="image", max_length=16)
    usage_count: int = Field(default=0, ge=0)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
