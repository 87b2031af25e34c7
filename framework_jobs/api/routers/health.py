"""Health endpoint router composition for app and framework controller checks."""

import httpx
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from framework_jobs.adapters import FrameworkControllerPort, FrameworkTransportError


def api_create_health_router(framework_controller: FrameworkControllerPort) -> APIRouter:
    """Create health-check router with app and framework controller status.

    Args:
        framework_controller: Adapter used to probe controller reachability.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when framework_controller is invalid.
    """

    if framework_controller is None:
        raise ValueError("framework_controller must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    async def api_health_status() -> JSONResponse:
        """Return application and framework controller health state.

        Returns:
            JSONResponse: Deterministic health payload for operational checks.

        Raises:
            RuntimeError: This handler does not raise runtime errors.
        """

        try:
            response = await framework_controller.adapter_list_frameworks()
        except FrameworkTransportError as error:
            payload = {
                "status": "degraded",
                "app": "up",
                "framework_controller": "down",
                "detail": str(error),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

        if response.status_code != httpx.codes.OK:
            payload = {
                "status": "degraded",
                "app": "up",
                "framework_controller": "down",
                "detail": f"framework controller returned HTTP {response.status_code}",
            }
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

        payload = {
            "status": "ok",
            "app": "up",
            "framework_controller": "up",
            "detail": "framework controller reachable",
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router
