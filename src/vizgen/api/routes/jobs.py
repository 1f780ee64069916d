"""Generation job API endpoints.

This module implements REST endpoints for generation jobs:
- POST /api/jobs - Submit an image or video generation request
- GET /api/jobs - Paginated history of the caller's jobs
- GET /api/jobs/quota - Today's usage against the daily limit
- GET /api/jobs/{job_id} - Poll a single job until it is completed or failed

The caller is identified by the X-User-Id header. Submissions return
immediately with the job in processing state.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from vizgen.api.dependencies import (
    client_ip,
    get_current_user_id,
    get_orchestrator,
    get_uow_factory,
)
from vizgen.models.generation_job import GenerationJob, JobStatus, Modality
from vizgen.models.operation_log import OperationLog
from vizgen.services.exceptions import (
    InternalStoreError,
    JobNotFound,
    QuotaExceeded,
    TemplateDisabled,
    TemplateNotFound,
    ValidationError,
)
from vizgen.services.generation.orchestrator import GenerationOrchestrator
from vizgen.services.generation.schemas import GenerateRequest

logger = structlog.get_logger()
router = APIRouter(prefix="/api/jobs", tags=["jobs"])


# Request/Response Models


class JobDTO(BaseModel):
    """Data Transfer Object for job information in API responses."""

    id: UUID = Field(..., description="Job identifier")
    modality: Modality = Field(..., description="image or video")
    status: JobStatus = Field(..., description="processing, completed or failed")
    prompt: str = Field(..., description="Final prompt after template/style resolution")
    size: str | None = Field(default=None, description="Requested size")
    aspect_ratio: str | None = Field(default=None, description="Aspect ratio, e.g. 16:9")
    style: str | None = Field(default=None, description="Style label")
    template_id: int | None = Field(default=None, description="Template used, if any")
    reference_image: str | None = Field(default=None, description="Reference image URL")
    generation_params: dict[str, Any] = Field(
        default_factory=dict, description="Modality-specific parameters"
    )
    url: str | None = Field(default=None, description="Primary asset URL (null until completed)")
    thumbnail: str | None = Field(default=None, description="Primary thumbnail URL")
    urls: list[str] | None = Field(default=None, description="All asset URLs (multi-asset jobs)")
    thumbnails: list[str] | None = Field(
        default=None, description="Thumbnails parallel to urls (multi-asset jobs)"
    )
    error_message: str | None = Field(default=None, description="Failure reason")
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: datetime = Field(..., description="Last status change (UTC)")

    @classmethod
    def from_job(cls, job: GenerationJob) -> "JobDTO":
        return cls.model_validate(job, from_attributes=True)


class JobsResponse(BaseModel):
    """Response model for paginated jobs list."""

    jobs: list[JobDTO] = Field(..., description="Jobs for current page (newest first)")
    total: int = Field(..., description="Total number of matching jobs")
    offset: int = Field(..., description="Number of jobs skipped")
    limit: int = Field(..., description="Maximum number of jobs per page")


class QuotaResponse(BaseModel):
    """Response model for the daily quota."""

    used: int = Field(..., description="Jobs created today (UTC)")
    limit: int = Field(..., description="Daily generation limit")
    remaining: int = Field(..., description="Jobs that can still be created today")


# API Endpoints


@router.post("", response_model=JobDTO, status_code=status.HTTP_202_ACCEPTED)
async def submit_job(
    body: GenerateRequest,
    request: Request,
    user_id: int = Depends(get_current_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    uow_factory=Depends(get_uow_factory),
) -> JobDTO:
    """Submit a generation request.

    Returns as soon as the job is stored; poll GET /api/jobs/{id} for the result.

    Raises:
        HTTPException 404: Template not found
        HTTPException 409: Template disabled
        HTTPException 422: Invalid prompt or parameters
        HTTPException 429: Daily generation limit reached
        HTTPException 503: Job could not be stored
    """
    try:
        job = await orchestrator.submit(user_id, body)
    except QuotaExceeded as e:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(e))
    except TemplateNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except TemplateDisabled as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except InternalStoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    await _log_operation(
        uow_factory,
        request,
        user_id=user_id,
        operation="GENERATE",
        job_id=job.id,
        details={
            "modality": body.modality.value,
            "prompt": body.prompt,
            "template_id": body.template_id,
            "size": body.size,
            "style": body.style,
        },
    )

    return JobDTO.from_job(job)


@router.get("", response_model=JobsResponse)
async def list_jobs(
    user_id: int = Depends(get_current_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    offset: int = Query(0, ge=0, description="Number of jobs to skip"),
    limit: int = Query(20, ge=1, le=100, description="Maximum jobs per page"),
    modality: Modality | None = Query(None, description="Filter by modality"),
    job_status: JobStatus | None = Query(None, alias="status", description="Filter by status"),
) -> JobsResponse:
    """Paginated history of the caller's jobs, newest first."""
    jobs, total = await orchestrator.list_jobs(
        user_id, offset=offset, limit=limit, modality=modality, status=job_status
    )
    return JobsResponse(
        jobs=[JobDTO.from_job(job) for job in jobs],
        total=total,
        offset=offset,
        limit=limit,
    )


@router.get("/quota", response_model=QuotaResponse)
async def get_quota(
    user_id: int = Depends(get_current_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> QuotaResponse:
    """Today's usage against the daily generation limit."""
    decision = await orchestrator.quota_status(user_id)
    return QuotaResponse(used=decision.used, limit=decision.limit, remaining=decision.remaining)


@router.get("/{job_id}", response_model=JobDTO)
async def get_job(
    job_id: UUID,
    request: Request,
    user_id: int = Depends(get_current_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    uow_factory=Depends(get_uow_factory),
) -> JobDTO:
    """Get one of the caller's jobs.

    Raises:
        HTTPException 404: Job missing or owned by another user
    """
    try:
        job = await orchestrator.get_job(user_id, job_id)
    except JobNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    await _log_operation(
        uow_factory,
        request,
        user_id=user_id,
        operation="VIEW",
        job_id=job.id,
        details={"modality": job.modality.value, "status": job.status.value},
    )

    return JobDTO.from_job(job)


async def _log_operation(
    uow_factory,
    request: Request,
    user_id: int,
    operation: str,
    job_id: UUID,
    details: dict[str, Any],
) -> None:
    """Record an audit entry; failures are logged and never fail the request."""
    try:
        async with await uow_factory() as uow:
            await uow.operation_logs.add(
                OperationLog(
                    user_id=user_id,
                    operation=operation,
                    resource_type="JOB",
                    resource_id=str(job_id),
                    details=details,
                    ip_address=client_ip(request),
                    user_agent=request.headers.get("user-agent"),
                )
            )
    except Exception as e:
        logger.warning(
            "operation_log.failed",
            operation=operation,
            job_id=str(job_id),
            error_type=type(e).__name__,
            error_message=str(e),
        )
