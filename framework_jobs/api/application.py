"""FastAPI application factory for the framework job service."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from framework_jobs.adapters import FrameworkControllerPort, JobServiceError
from framework_jobs.config import AppSettings
from framework_jobs.jobs import JobServicePort

from .routers import api_create_health_router, api_create_jobs_router


def create_api_application(
    settings: AppSettings,
    framework_controller: FrameworkControllerPort,
    job_service: JobServicePort,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        framework_controller: Framework controller adapter used by health endpoints.
        job_service: Job service backing the job endpoints.

    Returns:
        FastAPI: Framework application instance with job routes.

    Raises:
        RuntimeError: Raised if application initialization fails.
    """
    @asynccontextmanager
    async def api_lifespan(_application: FastAPI) -> AsyncIterator[None]:
        """Close the framework controller client when the application stops.

        Returns:
            AsyncIterator[None]: Lifespan context yielding once while serving.

        Raises:
            RuntimeError: This lifespan does not raise runtime errors.
        """

        yield
        await framework_controller.adapter_close()

    application = FastAPI(title="Framework Jobs", lifespan=api_lifespan)

    @application.exception_handler(JobServiceError)
    async def api_job_service_error_handler(_request: Request, error: JobServiceError) -> JSONResponse:
        """Render typed job errors as JSON bodies.

        Returns:
            JSONResponse: Error payload with the error status code.

        Raises:
            RuntimeError: This handler does not raise runtime errors.
        """

        status_code = error.status_code
        if not status.HTTP_400_BAD_REQUEST <= status_code <= 599:
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        payload = {"code": error.error_code, "message": error.message}
        return JSONResponse(content=payload, status_code=status_code)

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return a minimal service descriptor.

        Returns:
            dict[str, str]: Service name and environment.

        Raises:
            RuntimeError: Raised if route handler cannot produce a response.
        """

        return {
            "service": "framework-jobs",
            "status": "ready",
            "environment": settings.environment_name,
        }

    application.include_router(api_create_health_router(framework_controller=framework_controller))
    application.include_router(api_create_jobs_router(job_service=job_service))

    return application
