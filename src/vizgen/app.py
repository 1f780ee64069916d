"""FastAPI application factory."""

# Import timezone enforcement (sets TZ=UTC)
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from vizgen.api.routes import jobs
from vizgen.core import timezone  # noqa: F401
from vizgen.core.config import Settings, configure_logging
from vizgen.core.database import create_schema, setup_db_session
from vizgen.services.generation.ark_client import ArkClient
from vizgen.services.generation.orchestrator import GenerationOrchestrator
from vizgen.uow import create_uow_factory
from vizgen.workers.generation_worker import recover_orphaned_jobs

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Handles startup and shutdown tasks:
    - Startup: Configure logging, initialize database, fail orphaned jobs,
      build the provider client and orchestrator
    - Shutdown: Cancel in-flight dispatch tasks (each records its job as failed)
    """
    settings = Settings()  # type: ignore[call-arg]

    configure_logging(settings)

    session_factory = setup_db_session(settings.database_url, settings.db_pool_size)
    await create_schema(session_factory)

    uow_factory = create_uow_factory(session_factory)

    client = ArkClient(
        api_key=settings.ark_api_key,
        base_url=settings.ark_base_url,
        image_model=settings.ark_image_model,
        video_model=settings.ark_video_model,
        timeout=settings.ark_request_timeout_seconds,
    )
    orchestrator = GenerationOrchestrator(uow_factory, client, settings)

    # Store in app.state for access in routes
    app.state.session_factory = session_factory
    app.state.uow_factory = uow_factory
    app.state.orchestrator = orchestrator

    if settings.recover_stale_jobs:
        try:
            await recover_orphaned_jobs(uow_factory, settings)
        except Exception as e:
            # Recovery is housekeeping; new submissions can still be served
            logger.error(
                "startup.recovery_failed",
                error=str(e),
                error_type=type(e).__name__,
            )

    logger.info("application.startup", db_url=settings.database_url.split("@")[-1])

    yield

    logger.info("application.shutdown", in_flight_jobs=orchestrator.in_flight)
    await orchestrator.shutdown()

    await session_factory.kw["bind"].dispose()


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = Settings()  # type: ignore[call-arg]

    app = FastAPI(
        title="vizgen API",
        description="Text-to-image and text-to-video generation jobs",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(jobs.router)  # Jobs router has prefix="/api/jobs" in definition

    # Health check endpoint with database validation
    @app.get("/health")
    async def health_check(response: Response):
        """Health check endpoint with database connectivity test.

        Returns:
            200: {"status": "healthy"} if database connection succeeds
            503: {"status": "unhealthy", "error": {...}} if database connection fails
        """
        try:
            async with app.state.session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()

            logger.debug("health_check.success")
            return {"status": "healthy"}

        except Exception as e:
            logger.error(
                "health_check.failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            return {
                "status": "unhealthy",
                "error": {
                    "type": type(e).__name__,
                    "message": str(e),
                },
            }

    return app


# Create app instance for uvicorn
app = create_app()
