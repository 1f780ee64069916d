"""Background dispatch of generation jobs."""

from vizgen.workers.generation_worker import (
    dispatch_job,
    poll_video_task,
    recover_orphaned_jobs,
)

__all__ = [
    "dispatch_job",
    "poll_video_task",
    "recover_orphaned_jobs",
]
