"""GenerationJob entity - one image or video generation request and its lifecycle."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, Text
from sqlmodel import Field, SQLModel

from vizgen.core.timezone import utc_now


class JobStatus(str, Enum):
    """Job lifecycle status."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.PROCESSING


class Modality(str, Enum):
    """Kind of asset a job produces."""

    IMAGE = "image"
    VIDEO = "video"


MAX_ERROR_MESSAGE_LENGTH = 2000


class InvalidStateTransition(Exception):
    """Raised when attempting an invalid job state transition."""

    pass


class GenerationJob(SQLModel, table=True):
    """GenerationJob is the persisted record of a generation request."""

    __tablename__ = "generation_jobs"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: int = Field(index=True)
    modality: Modality = Field(index=True)
    # Style description plus user prompt, no fixed bound
    prompt: str = Field(sa_column=Column(Text, nullable=False))
    size: Optional[str] = Field(default=None, max_length=32)
    aspect_ratio: Optional[str] = Field(default=None, max_length=16)
    style: Optional[str] = Field(default=None, max_length=255)
    template_id: Optional[int] = Field(default=None, index=True)
    reference_image: Optional[str] = Field(default=None)
    generation_params: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    status: JobStatus = Field(default=JobStatus.PROCESSING, index=True)
    url: Optional[str] = Field(default=None)
    thumbnail: Optional[str] = Field(default=None)
    urls: Optional[list[str]] = Field(default=None, sa_column=Column(JSON))
    thumbnails: Optional[list[str]] = Field(default=None, sa_column=Column(JSON))
    error_message: Optional[str] = Field(default=None, max_length=MAX_ERROR_MESSAGE_LENGTH)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)

    def mark_completed(self, urls: list[str], thumbnails: list[str]) -> None:
        """Transition from processing to completed.

        The first URL/thumbnail is mirrored into the single-asset fields; the
        lists are only kept when more than one asset was produced.

        Raises:
            InvalidStateTransition: If current status is not processing
            ValueError: If no asset URL is given or list lengths disagree
        """
        self._ensure_processing("completed")
        if not urls:
            raise ValueError("a completed job needs at least one asset url")
        if thumbnails and len(thumbnails) != len(urls):
            raise ValueError(
                f"thumbnail count ({len(thumbnails)}) does not match url count ({len(urls)})"
            )
        self.url = urls[0]
        self.thumbnail = thumbnails[0] if thumbnails else None
        if len(urls) > 1:
            self.urls = list(urls)
            self.thumbnails = list(thumbnails)
        self.error_message = None
        self.status = JobStatus.COMPLETED
        self.updated_at = utc_now()

    def mark_failed(self, error_message: str) -> None:
        """Transition from processing to failed.

        Messages longer than the column are cut to MAX_ERROR_MESSAGE_LENGTH.

        Raises:
            InvalidStateTransition: If current status is already terminal
        """
        self._ensure_processing("failed")
        if len(error_message) > MAX_ERROR_MESSAGE_LENGTH:
            error_message = error_message[: MAX_ERROR_MESSAGE_LENGTH - 3] + "..."
        self.error_message = error_message
        self.status = JobStatus.FAILED
        self.updated_at = utc_now()

    def _ensure_processing(self, target: str) -> None:
        if self.status != JobStatus.PROCESSING:
            raise InvalidStateTransition(
                f"Cannot mark {target} from terminal state {JobStatus(self.status).value}. "
                "Job must be in processing state."
            )
