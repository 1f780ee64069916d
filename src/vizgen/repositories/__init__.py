"""Repository layer for vizgen.

Provides data access abstractions for all domain entities.
No base classes - each repository is self-contained.
"""

from vizgen.repositories.art_style import ArtStyleRepository
from vizgen.repositories.generation_job import GenerationJobRepository
from vizgen.repositories.operation_log import OperationLogRepository
from vizgen.repositories.template import TemplateRepository

__all__ = [
    "ArtStyleRepository",
    "GenerationJobRepository",
    "OperationLogRepository",
    "TemplateRepository",
]
