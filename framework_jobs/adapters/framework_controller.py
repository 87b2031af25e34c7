"""Framework controller adapter built on the Kubernetes REST API."""

from __future__ import annotations

import json
from typing import Any, Final

import httpx

from framework_jobs.config import AppSettings

from .errors import FrameworkTransportError
from .interfaces import AdapterResponse, FrameworkControllerPort, PodLookupPort


class FrameworkControllerAdapter(FrameworkControllerPort, PodLookupPort):
    """Adapter implementation for framework CRUD and pod lookups."""

    _USER_AGENT: Final[str] = "framework-jobs/1.0 (Python/httpx)"
    _JSON_HEADERS: Final[dict[str, str]] = {"Content-Type": "application/json"}
    _MERGE_PATCH_HEADERS: Final[dict[str, str]] = {"Content-Type": "application/merge-patch+json"}

    def __init__(self, settings: AppSettings, client: httpx.AsyncClient | None = None):
        """Initialize framework controller adapter.

        Args:
            settings: Validated runtime settings holding controller endpoints.
            client: Optional preconfigured async HTTP client.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when settings are missing.
        """

        if settings is None:
            raise ValueError("settings must not be None")

        self._settings = settings
        self._client = client or httpx.AsyncClient(
            timeout=settings.launcher_request_timeout_seconds,
            headers={"User-Agent": self._USER_AGENT},
        )

    async def adapter_close(self) -> None:
        """Close the underlying HTTP client.

        Returns:
            None: Releases connections as side effect.

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        await self._client.aclose()

    async def adapter_list_frameworks(self) -> AdapterResponse:
        return await self._adapter_request(
            method="GET",
            url=self._settings.settings_frameworks_path(),
            headers=self._JSON_HEADERS,
        )

    async def adapter_get_framework(self, framework_name: str) -> AdapterResponse:
        return await self._adapter_request(
            method="GET",
            url=self._settings.settings_framework_path(framework_name),
            headers=self._JSON_HEADERS,
        )

    async def adapter_create_framework(self, framework_description: dict[str, Any]) -> AdapterResponse:
        return await self._adapter_request(
            method="POST",
            url=self._settings.settings_frameworks_path(),
            headers=self._JSON_HEADERS,
            body=framework_description,
        )

    async def adapter_patch_execution_type(self, framework_name: str, execution_type: str) -> AdapterResponse:
        return await self._adapter_request(
            method="PATCH",
            url=self._settings.settings_framework_path(framework_name),
            headers=self._MERGE_PATCH_HEADERS,
            body={"spec": {"executionType": execution_type}},
        )

    async def adapter_get_pod(self, pod_name: str) -> dict[str, Any]:
        """Fetch one pod resource for placement lookups.

        Args:
            pod_name: Pod resource name.

        Returns:
            dict[str, Any]: Pod resource.

        Raises:
            FrameworkTransportError: Raised for transport failures and non-success statuses.
        """

        response = await self._adapter_request(
            method="GET",
            url=self._settings.settings_pod_path(pod_name),
            headers=self._JSON_HEADERS,
        )
        if response.status_code != httpx.codes.OK:
            raise FrameworkTransportError(
                f"pod {pod_name} lookup returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response.payload

    async def _adapter_request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: dict[str, Any] | None = None,
    ) -> AdapterResponse:
        """Execute one HTTP request and decode the JSON response.

        Args:
            method: HTTP method.
            url: Absolute endpoint URL.
            headers: Request headers.
            body: Optional JSON request body.

        Returns:
            AdapterResponse: Status code and decoded payload for any HTTP status.

        Raises:
            FrameworkTransportError: Raised when no response was received.
        """

        content = json.dumps(body).encode("utf-8") if body is not None else None
        try:
            response = await self._client.request(method, url, headers=headers, content=content)
        except httpx.TimeoutException as error:
            raise FrameworkTransportError(f"framework controller request timed out: {method} {url}") from error
        except httpx.HTTPError as error:
            raise FrameworkTransportError(f"framework controller request failed: {method} {url}") from error

        return AdapterResponse(status_code=response.status_code, payload=self._adapter_decode_payload(response))

    def _adapter_decode_payload(self, response: httpx.Response) -> dict[str, Any]:
        """Best-effort JSON decode of a controller response body.

        Args:
            response: HTTP response.

        Returns:
            dict[str, Any]: Decoded object, empty dict when the body is not a JSON object.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}
