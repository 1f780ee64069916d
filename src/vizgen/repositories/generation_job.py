"""GenerationJob repository for vizgen.

Provides data access methods for GenerationJob entities, including the
terminal-state write used by the dispatch unit.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vizgen.models.generation_job import GenerationJob, JobStatus, Modality


class GenerationJobRepository:
    """Repository for GenerationJob entities.

    Jobs are partitioned by id: each dispatch unit only ever touches its own
    row, so no cross-job locking is needed. ``finalize`` locks the single row
    it transitions and refuses to overwrite a terminal status.
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def add(self, job: GenerationJob) -> GenerationJob:
        """Persist new job to database.

        Args:
            job: GenerationJob entity to persist (status should be processing)

        Returns:
            Persisted job with generated ID
        """
        self.session.add(job)
        await self.session.flush()
        return job

    async def get_by_id(self, job_id: UUID) -> GenerationJob | None:
        """Retrieve job by UUID.

        Args:
            job_id: Job's unique identifier

        Returns:
            GenerationJob if found, None otherwise
        """
        result = await self.session.execute(
            select(GenerationJob).where(GenerationJob.id == job_id)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def get_for_user(self, user_id: int, job_id: UUID) -> GenerationJob | None:
        """Retrieve job by UUID only if it belongs to ``user_id``.

        A job owned by someone else is indistinguishable from a missing one.
        """
        result = await self.session.execute(
            select(GenerationJob).where(
                GenerationJob.id == job_id,  # type: ignore[arg-type]
                GenerationJob.user_id == user_id,  # type: ignore[arg-type]
            )
        )
        return result.scalar_one_or_none()

    async def count_created_since(self, user_id: int, since: datetime) -> int:
        """Count jobs the user created at or after ``since``.

        This is the only source of the daily quota count; there is no
        separately maintained counter.
        """
        result = await self.session.execute(
            select(func.count(GenerationJob.id)).where(  # type: ignore[arg-type]
                GenerationJob.user_id == user_id,  # type: ignore[arg-type]
                GenerationJob.created_at >= since,  # type: ignore[arg-type,operator]
            )
        )
        return result.scalar() or 0

    async def list_for_user(
        self,
        user_id: int,
        offset: int = 0,
        limit: int = 20,
        modality: Modality | None = None,
        status: JobStatus | None = None,
    ) -> tuple[list[GenerationJob], int]:
        """Retrieve the user's jobs with pagination and total count.

        Args:
            user_id: Owner of the jobs
            offset: Number of jobs to skip (default: 0)
            limit: Maximum number of jobs to return (default: 20)
            modality: Optional modality filter
            status: Optional status filter

        Returns:
            Tuple of (jobs newest first, total matching count)
        """
        conditions = [GenerationJob.user_id == user_id]  # type: ignore[arg-type]
        if modality is not None:
            conditions.append(GenerationJob.modality == modality)  # type: ignore[arg-type]
        if status is not None:
            conditions.append(GenerationJob.status == status)  # type: ignore[arg-type]

        count_result = await self.session.execute(
            select(func.count(GenerationJob.id)).where(*conditions)  # type: ignore[arg-type]
        )
        total = count_result.scalar() or 0

        data_result = await self.session.execute(
            select(GenerationJob)
            .where(*conditions)
            .order_by(GenerationJob.created_at.desc())  # type: ignore[attr-defined]
            .offset(offset)
            .limit(limit)
        )
        return list(data_result.scalars().all()), total

    async def set_task_id(self, job_id: UUID, task_id: str) -> None:
        """Record the provider task id in the job's parameter bag."""
        job = await self.get_by_id(job_id)
        if job is None:
            return
        # Reassign so the JSON column is detected as changed
        job.generation_params = {**(job.generation_params or {}), "task_id": task_id}
        self.session.add(job)
        await self.session.flush()

    async def finalize(
        self,
        job_id: UUID,
        status: JobStatus,
        urls: list[str] | None = None,
        thumbnails: list[str] | None = None,
        error_message: str | None = None,
    ) -> bool:
        """Write the terminal state of a job.

        Locks the row (FOR UPDATE on PostgreSQL), re-reads its status and only
        transitions jobs still in processing.

        Args:
            job_id: Job to finalize
            status: JobStatus.COMPLETED or JobStatus.FAILED
            urls: Asset URLs (required for completed)
            thumbnails: Thumbnail URLs, parallel to ``urls`` or empty
            error_message: Failure reason (used for failed)

        Returns:
            True if the job was transitioned, False if it was missing or
            already terminal

        Raises:
            ValueError: If status is not terminal, or completed without assets
        """
        result = await self.session.execute(
            select(GenerationJob)
            .where(GenerationJob.id == job_id)  # type: ignore[arg-type]
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        job = result.scalar_one_or_none()
        if job is None or job.status != JobStatus.PROCESSING:
            return False

        if status == JobStatus.COMPLETED:
            job.mark_completed(urls or [], thumbnails or [])
        elif status == JobStatus.FAILED:
            job.mark_failed(error_message or "Generation failed")
        else:
            raise ValueError(f"finalize requires a terminal status, got {status}")

        self.session.add(job)
        await self.session.flush()
        return True

    async def fail_stale_processing(self, created_before: datetime, error_message: str) -> int:
        """Mark jobs still processing and created before the cutoff as failed.

        Used at startup for jobs whose dispatch unit died with a previous
        process.

        Returns:
            Number of jobs transitioned
        """
        result = await self.session.execute(
            select(GenerationJob)
            .where(
                GenerationJob.status == JobStatus.PROCESSING,  # type: ignore[arg-type]
                GenerationJob.created_at < created_before,  # type: ignore[arg-type,operator]
            )
            .with_for_update(skip_locked=True)
        )
        jobs = list(result.scalars().all())
        for job in jobs:
            job.mark_failed(error_message)
            self.session.add(job)
        await self.session.flush()
        return len(jobs)
