"""SQLModel database entities.

All models are imported here to ensure they're registered with SQLModel metadata
before the schema is created.
"""

from vizgen.models.art_style import ArtStyle
from vizgen.models.generation_job import (
    GenerationJob,
    InvalidStateTransition,
    JobStatus,
    Modality,
)
from vizgen.models.operation_log import OperationLog
from vizgen.models.template import Template

__all__ = [
    "ArtStyle",
    "GenerationJob",
    "InvalidStateTransition",
    "JobStatus",
    "Modality",
    "OperationLog",
    "Template",
]
