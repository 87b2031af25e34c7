"""Job API router composition for list, detail, submission and control endpoints."""

from __future__ import annotations

import yaml
from fastapi import APIRouter, Body, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from framework_jobs.jobs import JobServicePort


def api_create_jobs_router(job_service: JobServicePort) -> APIRouter:
    """Create job router backed by the job service.

    Args:
        job_service: Request-boundary job operations.

    Returns:
        APIRouter: Router exposing `/api/v2/jobs` endpoints.

    Raises:
        ValueError: Raised when job_service is invalid.
    """

    if job_service is None:
        raise ValueError("job_service must not be None")

    router = APIRouter(prefix="/api/v2/jobs", tags=["jobs"])

    @router.get("")
    async def api_jobs_list() -> JSONResponse:
        """Return summaries of all jobs, newest first.

        Returns:
            JSONResponse: Job summary list.

        Raises:
            JobServiceError: Raised when the orchestrator answers unexpectedly.
        """

        summaries = await job_service.job_list()
        return JSONResponse(content=[summary.to_payload() for summary in summaries], status_code=status.HTTP_200_OK)

    @router.get("/{framework_name}")
    async def api_jobs_detail(framework_name: str) -> JSONResponse:
        """Return the detail view of one job.

        Returns:
            JSONResponse: Job detail payload.

        Raises:
            JobServiceError: Raised when the job is missing or the orchestrator fails.
        """

        detail = await job_service.job_get(framework_name)
        return JSONResponse(content=detail.to_payload(), status_code=status.HTTP_200_OK)

    @router.put("/{framework_name}")
    async def api_jobs_submit(framework_name: str, request: Request) -> JSONResponse:
        """Submit one job from a YAML config body.

        Returns:
            JSONResponse: Submission acknowledgement.

        Raises:
            JobServiceError: Raised when authorization or submission fails.
        """

        raw_config = (await request.body()).decode("utf-8", errors="replace")
        try:
            config = yaml.safe_load(raw_config)
        except yaml.YAMLError as error:
            payload = {"code": "InvalidProtocolError", "message": f"job config is not valid YAML: {error}"}
            return JSONResponse(content=payload, status_code=status.HTTP_400_BAD_REQUEST)
        if not isinstance(config, dict):
            payload = {"code": "InvalidProtocolError", "message": "job config must be a YAML mapping"}
            return JSONResponse(content=payload, status_code=status.HTTP_400_BAD_REQUEST)

        try:
            await job_service.job_put(framework_name, config, raw_config)
        except ValueError as error:
            payload = {"code": "InvalidProtocolError", "message": str(error)}
            return JSONResponse(content=payload, status_code=status.HTTP_400_BAD_REQUEST)

        payload = {"message": f"update job {framework_name} successfully"}
        return JSONResponse(content=payload, status_code=status.HTTP_202_ACCEPTED)

    @router.put("/{framework_name}/executionType")
    async def api_jobs_execute(framework_name: str, value: str = Body(..., embed=True)) -> JSONResponse:
        """Start or stop one job.

        Returns:
            JSONResponse: Execution acknowledgement.

        Raises:
            JobServiceError: Raised when the orchestrator rejects the patch.
        """

        normalized_value = value.strip().upper()
        if normalized_value not in {"START", "STOP"}:
            payload = {"code": "InvalidParametersError", "message": "value must be START or STOP"}
            return JSONResponse(content=payload, status_code=status.HTTP_400_BAD_REQUEST)

        await job_service.job_execute(framework_name, normalized_value)
        payload = {"message": f"execute job {framework_name} successfully"}
        return JSONResponse(content=payload, status_code=status.HTTP_202_ACCEPTED)

    @router.get("/{framework_name}/config")
    async def api_jobs_config(framework_name: str) -> JSONResponse:
        """Return the config one job was submitted with.

        Returns:
            JSONResponse: Parsed job config.

        Raises:
            JobServiceError: Raised when the job or its config is missing.
        """

        config = await job_service.job_get_config(framework_name)
        return JSONResponse(content=jsonable_encoder(config), status_code=status.HTTP_200_OK)

    @router.get("/{framework_name}/ssh")
    async def api_jobs_ssh(framework_name: str) -> JSONResponse:
        """Return SSH info of one job.

        Returns:
            JSONResponse: This handler always fails through the job service.

        Raises:
            JobServiceError: Always raised because SSH info is not available.
        """

        await job_service.job_get_ssh_info(framework_name)
        payload = {"message": "no ssh info"}
        return JSONResponse(content=payload, status_code=status.HTTP_404_NOT_FOUND)

    return router
