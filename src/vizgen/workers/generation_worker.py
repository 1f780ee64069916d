"""Dispatch unit for generation jobs.

Each submitted job gets one ``dispatch_job`` coroutine running as its own
asyncio task. It is the only writer of the job's terminal state.

Workflow:
- image: one synchronous provider call, then finalize
- video: create a provider task, then poll it at a fixed interval until it
  succeeds, fails, or the polling ceiling is reached

Error boundary:

Every exception raised while dispatching (provider errors, network errors,
malformed responses, database errors) is caught here and recorded on the
job as ``failed`` with the exception's message. Cancellation (application
shutdown) is recorded as ``failed`` too and then re-raised. Nothing escapes
without a finalize attempt, otherwise the job would stay ``processing``
forever.

Each step opens its own short-lived Unit of Work; no session is held open
across provider calls or polling sleeps.
"""

import asyncio
import time
from datetime import timedelta
from typing import Callable
from uuid import UUID

import structlog

from vizgen.core.config import Settings
from vizgen.core.timezone import utc_now
from vizgen.models.generation_job import JobStatus, Modality
from vizgen.services.exceptions import ProviderError, ProviderTimeout
from vizgen.services.generation.ark_client import ArkClient, TaskState
from vizgen.services.generation.result_assembler import AssetSet, SingleAsset, normalize
from vizgen.services.generation.schemas import GenerateRequest

logger = structlog.get_logger(__name__)

CANCELLED_MESSAGE = "Generation cancelled: service shutting down"
INTERRUPTED_MESSAGE = "Generation interrupted: service restarted while job was processing"

# Extra time granted to orphaned jobs beyond the polling ceiling
RECOVERY_GRACE_SECONDS = 60


async def finalize_job(
    uow_factory: Callable,
    job_id: UUID,
    status: JobStatus,
    assets: AssetSet | None = None,
    error_message: str | None = None,
) -> bool:
    """Write the terminal state in its own transaction.

    Returns:
        True if the job transitioned, False if it was already terminal
    """
    async with await uow_factory() as uow:
        finalized = await uow.jobs.finalize(
            job_id,
            status,
            urls=assets.urls if assets else None,
            thumbnails=assets.thumbnails if assets else None,
            error_message=error_message,
        )

    if not finalized:
        logger.warning("job.finalize.skipped", job_id=str(job_id), status=status.value)
    return finalized


async def generate_image_asset(client: ArkClient, request: GenerateRequest) -> AssetSet:
    """Run the synchronous image path.

    Images have no distinct thumbnail; the asset URL doubles as one.
    """
    url = await client.generate_image(
        prompt=request.prompt,
        size=request.size,
        style=request.style,
        quality=request.quality,
        response_format=request.response_format,
        seed=request.seed,
        guidance_scale=request.guidance_scale,
        watermark=request.watermark,
        reference_image=request.reference_image,
    )
    return SingleAsset(url=url, thumbnail=url)


async def poll_video_task(
    client: ArkClient,
    task_id: str,
    interval_seconds: float,
    max_polls: int,
    job_id: UUID | None = None,
) -> AssetSet:
    """Poll a provider task until it reaches a terminal state.

    Sleeps ``interval_seconds`` before every query, at most ``max_polls``
    times. The sleep is the only suspension point and is cancellable.

    Returns:
        Normalized assets of the succeeded task

    Raises:
        ProviderError: Task failed on the provider side
        ProviderTimeout: Task still running after ``max_polls`` queries
    """
    for attempt in range(1, max_polls + 1):
        await asyncio.sleep(interval_seconds)

        status = await client.query_task(task_id)

        if status.state == TaskState.SUCCEEDED:
            assets = normalize(status.video_url, status.thumbnail_url)
            logger.info(
                "job.poll.succeeded",
                job_id=str(job_id) if job_id else None,
                task_id=task_id,
                attempt=attempt,
                asset_count=len(assets.urls),
            )
            return assets

        if status.state == TaskState.FAILED:
            raise ProviderError(f"Video generation task failed: {status.error}")

        logger.debug(
            "job.poll.running",
            job_id=str(job_id) if job_id else None,
            task_id=task_id,
            attempt=attempt,
            max_polls=max_polls,
        )

    timeout_seconds = interval_seconds * max_polls
    raise ProviderTimeout(
        f"Video generation timed out after {max_polls} status checks "
        f"({timeout_seconds:.0f}s), please try again later"
    )


async def generate_video_asset(
    client: ArkClient,
    request: GenerateRequest,
    job_id: UUID,
    uow_factory: Callable,
    settings: Settings,
) -> AssetSet:
    """Run the asynchronous video path: create task, record its id, poll."""
    task_id = await client.generate_video(
        prompt=request.prompt,
        model=request.model,
        resolution=request.resolution,
        duration=request.duration,
        ratio=request.ratio,
        fps=request.fps,
        camera_fixed=request.camera_fixed,
        cfg_scale=request.cfg_scale,
        count=request.count,
        first_frame_image=request.first_frame_image,
        last_frame_image=request.last_frame_image,
        hd=request.hd,
        watermark=request.watermark,
    )
    logger.info("job.video.task_created", job_id=str(job_id), task_id=task_id)

    async with await uow_factory() as uow:
        await uow.jobs.set_task_id(job_id, task_id)

    return await poll_video_task(
        client,
        task_id,
        interval_seconds=settings.video_poll_interval_seconds,
        max_polls=settings.video_max_polls,
        job_id=job_id,
    )


async def dispatch_job(
    job_id: UUID,
    request: GenerateRequest,
    uow_factory: Callable,
    client: ArkClient,
    settings: Settings,
) -> None:
    """Drive one job from processing to its terminal state.

    Args:
        job_id: Job created (and committed) by the orchestrator
        request: Request with the resolved prompt
        uow_factory: Factory for Units of Work (one per step)
        client: Generation provider client
        settings: Application settings (polling interval and ceiling)

    Raises:
        asyncio.CancelledError: After recording the job as failed
    """
    start_time = time.time()
    logger.info("job.dispatch.started", job_id=str(job_id), modality=request.modality.value)

    try:
        if request.modality == Modality.IMAGE:
            assets = await generate_image_asset(client, request)
        else:
            assets = await generate_video_asset(client, request, job_id, uow_factory, settings)

        await finalize_job(uow_factory, job_id, JobStatus.COMPLETED, assets=assets)

        logger.info(
            "job.completed",
            job_id=str(job_id),
            modality=request.modality.value,
            asset_count=len(assets.urls),
            duration_seconds=time.time() - start_time,
        )

    except asyncio.CancelledError:
        logger.warning("job.cancelled", job_id=str(job_id))
        await _record_failure(uow_factory, job_id, CANCELLED_MESSAGE)
        raise

    except Exception as e:
        logger.error(
            "job.failed",
            job_id=str(job_id),
            modality=request.modality.value,
            error_type=type(e).__name__,
            error_message=str(e),
            duration_seconds=time.time() - start_time,
        )
        await _record_failure(uow_factory, job_id, str(e) or type(e).__name__)


async def _record_failure(uow_factory: Callable, job_id: UUID, error_message: str) -> None:
    """Finalize as failed; a failure here can only be logged."""
    try:
        await finalize_job(uow_factory, job_id, JobStatus.FAILED, error_message=error_message)
    except Exception as e:
        logger.error(
            "job.finalize.failed",
            job_id=str(job_id),
            error_type=type(e).__name__,
            error_message=str(e),
            exc_info=True,
        )


async def recover_orphaned_jobs(uow_factory: Callable, settings: Settings) -> int:
    """Fail jobs left in processing by a previous process.

    A job older than the polling ceiling (plus a grace period) cannot still
    be owned by a live dispatch unit.

    Returns:
        Number of jobs marked failed
    """
    max_age = settings.video_polling_ceiling_seconds + RECOVERY_GRACE_SECONDS
    cutoff = utc_now() - timedelta(seconds=max_age)

    async with await uow_factory() as uow:
        recovered = await uow.jobs.fail_stale_processing(cutoff, INTERRUPTED_MESSAGE)

    if recovered > 0:
        logger.info("worker.recovery", orphaned_jobs_failed=recovered)
    return recovered
