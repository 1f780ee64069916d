"""Generation job orchestrator.

Accepts generation requests, enforces the daily quota, resolves the prompt,
persists the job as ``processing`` and hands it to a background dispatch
task. ``submit`` returns as soon as the job is committed; the dispatch task
owns the job until it writes the terminal state.
"""

import asyncio
from typing import Callable
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError

from vizgen.core.config import Settings
from vizgen.models.generation_job import GenerationJob, JobStatus, Modality
from vizgen.services.exceptions import InternalStoreError, JobNotFound, QuotaExceeded
from vizgen.services.generation.ark_client import ArkClient
from vizgen.services.generation.prompt_resolver import ResolvedPrompt, resolve_prompt
from vizgen.services.generation.quota import AdmitDecision, QuotaGuard
from vizgen.services.generation.schemas import GenerateRequest
from vizgen.services.generation.sizes import aspect_ratio_for
from vizgen.workers.generation_worker import dispatch_job

logger = structlog.get_logger(__name__)


class GenerationOrchestrator:
    """Submit path and supervisor of in-flight dispatch tasks."""

    def __init__(
        self,
        uow_factory: Callable,
        client: ArkClient,
        settings: Settings,
        quota: QuotaGuard | None = None,
    ):
        """Initialize orchestrator.

        Args:
            uow_factory: Factory producing UnitOfWork instances
            client: Generation provider client
            settings: Application settings (quota and polling configuration)
            quota: Quota guard (default: one built from settings)
        """
        self.uow_factory = uow_factory
        self.client = client
        self.settings = settings
        self.quota = quota or QuotaGuard(settings.daily_generation_limit)
        self._tasks: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        """Number of dispatch tasks still running."""
        return len(self._tasks)

    async def submit(self, user_id: int, request: GenerateRequest) -> GenerationJob:
        """Create a job and start dispatching it in the background.

        Steps:
        1. Quota check (deny -> QuotaExceeded, nothing written)
        2. Prompt resolution (template errors surface here)
        3. Persist the job as processing and commit
        4. Spawn the dispatch task with the resolved request
        5. Bump the template usage counter (best effort)

        Args:
            user_id: Submitting user
            request: Generation request

        Returns:
            The committed job, still in processing

        Raises:
            QuotaExceeded: Daily ceiling reached
            ValidationError: Blank or oversized prompt
            TemplateNotFound: template_id does not exist
            TemplateDisabled: template is inactive
            InternalStoreError: The database rejected the quota read or the insert
        """
        try:
            job, decision, resolved = await self._admit_and_persist(user_id, request)
        except SQLAlchemyError as e:
            logger.error(
                "job.store_failed",
                user_id=user_id,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise InternalStoreError(f"Failed to store job: {type(e).__name__}") from e

        # Committed: the job is visible as processing from here on
        logger.info(
            "job.submitted",
            job_id=str(job.id),
            user_id=user_id,
            modality=request.modality.value,
            template_id=request.template_id,
            quota_used=decision.used + 1,
        )

        # Spawn before any further await so the committed job always has an owner
        dispatch_request = request.model_copy(update={"prompt": resolved.prompt})
        self._spawn_dispatch(job.id, dispatch_request)

        if resolved.template is not None:
            await self._increment_template_usage(resolved.template.id)

        return job

    async def get_job(self, user_id: int, job_id: UUID) -> GenerationJob:
        """Return the caller's job.

        Raises:
            JobNotFound: Job missing or owned by another user
        """
        async with await self.uow_factory() as uow:
            job = await uow.jobs.get_for_user(user_id, job_id)
        if job is None:
            raise JobNotFound(f"Job {job_id} not found")
        return job

    async def list_jobs(
        self,
        user_id: int,
        offset: int = 0,
        limit: int = 20,
        modality: Modality | None = None,
        status: JobStatus | None = None,
    ) -> tuple[list[GenerationJob], int]:
        """Return a page of the caller's jobs (newest first) and the total count."""
        async with await self.uow_factory() as uow:
            return await uow.jobs.list_for_user(
                user_id, offset=offset, limit=limit, modality=modality, status=status
            )

    async def quota_status(self, user_id: int) -> AdmitDecision:
        """Report today's usage without admitting anything."""
        async with await self.uow_factory() as uow:
            return await self.quota.check(uow.jobs, user_id)

    async def drain(self) -> None:
        """Wait until every in-flight dispatch task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel in-flight dispatch tasks and wait for them to record failure."""
        tasks = list(self._tasks)
        if not tasks:
            return

        logger.info("orchestrator.shutdown", in_flight=len(tasks))
        # A task cancelled before its first step never enters its error
        # boundary; let freshly spawned tasks reach their first await
        await asyncio.sleep(0)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _admit_and_persist(
        self, user_id: int, request: GenerateRequest
    ) -> tuple[GenerationJob, AdmitDecision, ResolvedPrompt]:
        async with await self.uow_factory() as uow:
            decision = await self.quota.check(uow.jobs, user_id)
            if not decision.admitted:
                logger.warning(
                    "job.quota_exceeded", user_id=user_id, used=decision.used, limit=decision.limit
                )
                raise QuotaExceeded(decision.used, decision.limit)

            resolved = await resolve_prompt(uow, request)

            job = GenerationJob(
                user_id=user_id,
                modality=request.modality,
                prompt=resolved.prompt,
                size=request.size,
                aspect_ratio=self._aspect_ratio(request),
                style=resolved.style_label,
                template_id=request.template_id,
                reference_image=request.reference_image,
                generation_params=request.generation_params(),
                status=JobStatus.PROCESSING,
            )
            await uow.jobs.add(job)

        return job, decision, resolved

    def _spawn_dispatch(self, job_id: UUID, request: GenerateRequest) -> None:
        task = asyncio.create_task(
            dispatch_job(job_id, request, self.uow_factory, self.client, self.settings),
            name=f"dispatch-{job_id}",
        )
        # Keep a strong reference until the task is done
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _increment_template_usage(self, template_id: int) -> None:
        try:
            async with await self.uow_factory() as uow:
                await uow.templates.increment_usage(template_id)
        except Exception as e:
            # The job already exists; a lost usage count does not undo it
            logger.warning(
                "template.usage_increment_failed",
                template_id=template_id,
                error_type=type(e).__name__,
                error_message=str(e),
            )

    @staticmethod
    def _aspect_ratio(request: GenerateRequest) -> str:
        if request.modality == Modality.VIDEO and request.ratio:
            return request.ratio
        return aspect_ratio_for(request.size)
