"""ArtStyle entity - named styles whose description is prepended to prompts."""

from typing import Optional

from sqlmodel import Field, SQLModel


class ArtStyle(SQLModel, table=True):
    __tablename__ = "art_styles"  # type: ignore[assignment]

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    applicable_type: str = Field(default="all", max_length=16)  # "image", "video" or "all"
    sort_order: int = Field(default=0)
    is_active: bool = Field(default=True)
