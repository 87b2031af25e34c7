"""Tests for request-boundary job service behavior."""

from __future__ import annotations

import asyncio
import random
from typing import Any

import pytest

from framework_jobs.adapters import (
    AdapterResponse,
    ForbiddenUserError,
    NoJobConfigError,
    NoJobError,
    NoJobSshInfoError,
    StaticVirtualClusterAuthorizer,
    UnknownError,
)
from framework_jobs.config import AppSettings
from framework_jobs.domain import ExitSpecTable, domain_name_encode
from framework_jobs.jobs import FrameworkJobService, FrameworkSpecCompiler


class _FrameworkControllerStub:
    """Framework controller double recording calls and replaying fixed responses."""

    def __init__(self, response: AdapterResponse):
        self.response = response
        self.calls: list[tuple[str, Any]] = []

    async def adapter_list_frameworks(self) -> AdapterResponse:
        """Record list call.

        Returns:
            AdapterResponse: Configured response.

        Raises:
            RuntimeError: This stub does not raise runtime errors.
        """

        self.calls.append(("list", None))
        return self.response

    async def adapter_get_framework(self, framework_name: str) -> AdapterResponse:
        """Record get call.

        Args:
            framework_name: Encoded framework name.

        Returns:
            AdapterResponse: Configured response.

        Raises:
            RuntimeError: This stub does not raise runtime errors.
        """

        self.calls.append(("get", framework_name))
        return self.response

    async def adapter_create_framework(self, framework_description: dict[str, Any]) -> AdapterResponse:
        """Record create call.

        Args:
            framework_description: Compiled framework description.

        Returns:
            AdapterResponse: Configured response.

        Raises:
            RuntimeError: This stub does not raise runtime errors.
        """

        self.calls.append(("create", framework_description))
        return self.response

    async def adapter_patch_execution_type(self, framework_name: str, execution_type: str) -> AdapterResponse:
        """Record patch call.

        Args:
            framework_name: Encoded framework name.
            execution_type: Capitalized execution type.

        Returns:
            AdapterResponse: Configured response.

        Raises:
            RuntimeError: This stub does not raise runtime errors.
        """

        self.calls.append(("patch", (framework_name, execution_type)))
        return self.response


class _PodLookupStub:
    """Pod lookup double that never finds pods."""

    async def adapter_get_pod(self, pod_name: str) -> dict[str, Any]:
        """Raise for every pod.

        Args:
            pod_name: Pod name.

        Returns:
            dict[str, Any]: This method does not return.

        Raises:
            ConnectionError: Always raised by this stub.
        """

        raise ConnectionError(f"pod {pod_name} not found")


def _build_service(response: AdapterResponse) -> tuple[FrameworkJobService, _FrameworkControllerStub]:
    """Create a job service around a controller stub.

    Args:
        response: Response replayed by the controller stub.

    Returns:
        tuple[FrameworkJobService, _FrameworkControllerStub]: Service and its controller stub.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    settings = AppSettings(environment_name="test", launcher_api_server_uri="http://k8s.test")
    controller = _FrameworkControllerStub(response)
    service = FrameworkJobService(
        settings=settings,
        framework_controller=controller,
        pod_lookup=_PodLookupStub(),
        authorizer=StaticVirtualClusterAuthorizer({"alice": ["vc1"]}),
        compiler=FrameworkSpecCompiler(settings=settings, random_source=random.Random(0)),
        exit_spec_table=ExitSpecTable([{"code": 256}, {"code": -8000}]),
    )
    return service, controller


def _build_config(virtual_cluster: str | None = None) -> dict[str, Any]:
    """Create a single-role job config.

    Args:
        virtual_cluster: Optional virtual cluster default.

    Returns:
        dict[str, Any]: Parsed job config.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    config: dict[str, Any] = {
        "prerequisites": [{"type": "dockerimage", "name": "img", "uri": "busybox"}],
        "taskRoles": {"main": {"dockerImage": "img", "resourcePerInstance": {"cpu": 1, "memoryMB": 256, "gpu": 0}}},
    }
    if virtual_cluster is not None:
        config["defaults"] = {"virtualCluster": virtual_cluster}
    return config


def test_jobs_service_list_sorts_newest_first() -> None:
    """Return summaries ordered by creation time descending.

    Returns:
        None: Assertions validate ordering.

    Raises:
        AssertionError: Raised when ordering is wrong.
    """

    items = [
        {"metadata": {"name": "old", "creationTimestamp": "2020-01-01T00:00:00Z"}},
        {"metadata": {"name": "new", "creationTimestamp": "2021-01-01T00:00:00Z"}},
        {"metadata": {"name": "undated"}},
    ]
    service, _ = _build_service(AdapterResponse(status_code=200, payload={"items": items}))

    summaries = asyncio.run(service.job_list())

    assert [summary.name for summary in summaries] == ["new", "old", "undated"]


def test_jobs_service_list_raises_unknown_error_for_failures() -> None:
    """Map non-success list responses to UnknownError with controller message.

    Returns:
        None: Assertions validate error mapping.

    Raises:
        AssertionError: Raised when failures are not mapped.
    """

    service, _ = _build_service(AdapterResponse(status_code=500, payload={"message": "etcd down"}))

    with pytest.raises(UnknownError, match="etcd down") as error_info:
        asyncio.run(service.job_list())

    assert error_info.value.status_code == 500


def test_jobs_service_get_maps_not_found() -> None:
    """Raise NoJobError when the controller reports 404 for the encoded name.

    Returns:
        None: Assertions validate not-found mapping and name encoding.

    Raises:
        AssertionError: Raised when not-found is not mapped.
    """

    service, controller = _build_service(AdapterResponse(status_code=404, payload={}))

    with pytest.raises(NoJobError, match="alice~mnist"):
        asyncio.run(service.job_get("alice~mnist"))

    assert controller.calls == [("get", domain_name_encode("alice~mnist"))]


def test_jobs_service_put_submits_compiled_framework() -> None:
    """Authorize, compile and submit a job to its virtual cluster.

    Returns:
        None: Assertions validate submission.

    Raises:
        AssertionError: Raised when submission is wrong.
    """

    service, controller = _build_service(AdapterResponse(status_code=201, payload={}))

    asyncio.run(service.job_put("alice~mnist", _build_config("vc1"), "raw"))

    (call_name, framework_description), = controller.calls
    assert call_name == "create"
    assert framework_description["metadata"]["labels"]["virtualCluster"] == "vc1"
    assert framework_description["metadata"]["annotations"]["config"] == "raw"


def test_jobs_service_put_defaults_virtual_cluster_and_requires_created() -> None:
    """Submit to the default virtual cluster and reject non-201 answers.

    Returns:
        None: Assertions validate default cluster and status mapping.

    Raises:
        AssertionError: Raised when defaults or status mapping are wrong.
    """

    service, controller = _build_service(AdapterResponse(status_code=409, payload={"message": "already exists"}))

    with pytest.raises(UnknownError, match="already exists") as error_info:
        asyncio.run(service.job_put("bob~mnist", _build_config(), "raw"))

    assert error_info.value.status_code == 409
    assert controller.calls[0][1]["metadata"]["labels"]["virtualCluster"] == "default"


def test_jobs_service_put_rejects_unauthorized_virtual_cluster() -> None:
    """Raise ForbiddenUserError before compiling or submitting.

    Returns:
        None: Assertions validate authorization ordering.

    Raises:
        AssertionError: Raised when unauthorized jobs are submitted.
    """

    service, controller = _build_service(AdapterResponse(status_code=201, payload={}))

    with pytest.raises(ForbiddenUserError, match="bob") as error_info:
        asyncio.run(service.job_put("bob~mnist", {"defaults": {"virtualCluster": "vc1"}}, "raw"))

    assert error_info.value.status_code == 403
    assert controller.calls == []


def test_jobs_service_put_rejects_non_integer_counts_before_submitting() -> None:
    """Raise ValueError for a text GPU count without calling the controller.

    Returns:
        None: Assertions validate validation ordering.

    Raises:
        AssertionError: Raised when malformed configs reach the controller.
    """

    service, controller = _build_service(AdapterResponse(status_code=201, payload={}))
    config = _build_config()
    config["taskRoles"]["main"]["resourcePerInstance"]["gpu"] = "one"

    with pytest.raises(ValueError, match="gpu must be a non-negative integer"):
        asyncio.run(service.job_put("alice~mnist", config, "raw"))

    assert controller.calls == []


def test_jobs_service_execute_capitalizes_execution_type() -> None:
    """Patch execution type in capitalized form and require 200.

    Returns:
        None: Assertions validate patch request.

    Raises:
        AssertionError: Raised when execution type is not normalized.
    """

    service, controller = _build_service(AdapterResponse(status_code=200, payload={}))

    asyncio.run(service.job_execute("alice~mnist", "STOP"))

    assert controller.calls == [("patch", (domain_name_encode("alice~mnist"), "Stop"))]

    controller.response = AdapterResponse(status_code=404, payload={"message": "missing"})
    with pytest.raises(UnknownError, match="missing"):
        asyncio.run(service.job_execute("alice~mnist", "START"))


def test_jobs_service_get_config_parses_annotation() -> None:
    """Return the parsed config annotation and map missing configs.

    Returns:
        None: Assertions validate config retrieval.

    Raises:
        AssertionError: Raised when config retrieval is wrong.
    """

    service, controller = _build_service(
        AdapterResponse(status_code=200, payload={"metadata": {"annotations": {"config": "name: mnist\n"}}})
    )

    assert asyncio.run(service.job_get_config("alice~mnist")) == {"name": "mnist"}

    controller.response = AdapterResponse(status_code=200, payload={"metadata": {}})
    with pytest.raises(NoJobConfigError):
        asyncio.run(service.job_get_config("alice~mnist"))


def test_jobs_service_get_ssh_info_always_raises() -> None:
    """Raise NoJobSshInfoError without contacting the controller.

    Returns:
        None: Assertions validate ssh info behavior.

    Raises:
        AssertionError: Raised when ssh info is returned.
    """

    service, controller = _build_service(AdapterResponse(status_code=200, payload={}))

    with pytest.raises(NoJobSshInfoError):
        asyncio.run(service.job_get_ssh_info("alice~mnist"))

    assert controller.calls == []
