"""FastAPI dependencies for request validation and common operations.

This module provides reusable FastAPI dependencies for:
- Caller identification
- Access to the Unit of Work factory and the generation orchestrator
"""

from typing import Annotated, Callable

from fastapi import Header, HTTPException, Request, status

from vizgen.services.generation.orchestrator import GenerationOrchestrator
from vizgen.uow import UnitOfWork


async def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> int:
    """Identify the caller from the X-User-Id header.

    Authentication happens upstream (API gateway); this service trusts the
    forwarded user id.

    Raises:
        HTTPException: 401 Unauthorized if the header is missing or not a positive integer
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header"
        )
    try:
        user_id = int(x_user_id)
    except ValueError:
        user_id = 0
    if user_id <= 0:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid X-User-Id")
    return user_id


def get_uow_factory(request: Request) -> Callable[[], UnitOfWork]:
    """Get UnitOfWork factory from app state.

    Example:
        >>> @router.post("/endpoint")
        >>> async def endpoint(uow_factory=Depends(get_uow_factory)):
        ...     async with await uow_factory() as uow:
        ...         await uow.jobs.get_by_id(job_id)
    """
    return request.app.state.uow_factory


def get_orchestrator(request: Request) -> GenerationOrchestrator:
    """Get the generation orchestrator created in the app lifespan."""
    return request.app.state.orchestrator


def client_ip(request: Request) -> str | None:
    """Best-effort client IP, honouring X-Forwarded-For and X-Real-IP."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None
