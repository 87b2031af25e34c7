"""Typed interfaces for adapter-layer responsibilities."""

from dataclasses import dataclass
from typing import Any
from typing import Protocol


@dataclass(frozen=True)
class AdapterResponse:
    """Response contract for framework controller requests.

    Attributes:
        status_code: HTTP status code returned by the controller.
        payload: Decoded JSON body, empty dict when the body is not JSON.
    """

    status_code: int
    payload: dict[str, Any]

    def response_message(self) -> str:
        """Return the controller message of an error response.

        Returns:
            str: `message` field of the payload, empty when absent.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        message = self.payload.get("message") if isinstance(self.payload, dict) else None
        return str(message) if message is not None else ""


class FrameworkControllerPort(Protocol):
    """Port definition for framework resource CRUD on the orchestrator."""

    async def adapter_list_frameworks(self) -> AdapterResponse:
        """List framework resources.

        Returns:
            AdapterResponse: Controller response with an `items` list on success.

        Raises:
            ConnectionError: Raised when the controller cannot be reached.
        """

    async def adapter_get_framework(self, framework_name: str) -> AdapterResponse:
        """Fetch one framework resource by encoded name.

        Args:
            framework_name: Encoded framework resource name.

        Returns:
            AdapterResponse: Controller response with the framework on success.

        Raises:
            ConnectionError: Raised when the controller cannot be reached.
        """

    async def adapter_create_framework(self, framework_description: dict[str, Any]) -> AdapterResponse:
        """Create one framework resource.

        Args:
            framework_description: Compiled framework description.

        Returns:
            AdapterResponse: Controller response.

        Raises:
            ConnectionError: Raised when the controller cannot be reached.
        """

    async def adapter_patch_execution_type(self, framework_name: str, execution_type: str) -> AdapterResponse:
        """Merge-patch the execution type of one framework.

        Args:
            framework_name: Encoded framework resource name.
            execution_type: Capitalized execution type such as `Start` or `Stop`.

        Returns:
            AdapterResponse: Controller response.

        Raises:
            ConnectionError: Raised when the controller cannot be reached.
        """

    async def adapter_close(self) -> None:
        """Release the connections held by the adapter.

        Returns:
            None: Releases connections as side effect.

        Raises:
            RuntimeError: Implementations do not raise runtime errors.
        """


class PodLookupPort(Protocol):
    """Port definition for per-task pod placement lookups."""

    async def adapter_get_pod(self, pod_name: str) -> dict[str, Any]:
        """Fetch one pod resource.

        Args:
            pod_name: Pod resource name.

        Returns:
            dict[str, Any]: Pod resource.

        Raises:
            ConnectionError: Raised when the pod cannot be fetched.
        """


class VirtualClusterAuthorizerPort(Protocol):
    """Port definition for user virtual-cluster authorization."""

    async def adapter_check_user_virtual_cluster(self, user_name: str, virtual_cluster: str) -> bool:
        """Return whether the user may submit jobs to the virtual cluster.

        Args:
            user_name: Submitting user.
            virtual_cluster: Requested virtual cluster.

        Returns:
            bool: True when the user is authorized.

        Raises:
            ConnectionError: Raised when authorization data cannot be fetched.
        """
