"""Tests for framework resource conversion into job views."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from framework_jobs.adapters import FrameworkTransportError
from framework_jobs.config import AppSettings
from framework_jobs.domain import ExitSpecTable, JobState
from framework_jobs.jobs import (
    job_convert_container_gpus,
    job_convert_container_ports,
    job_convert_framework_detail,
    job_convert_framework_summary,
    job_convert_retry_details,
    job_convert_timestamp_ms,
)


class _PodLookupStub:
    """Pod lookup double answering from a fixed pod table."""

    def __init__(self, pods: dict[str, dict[str, Any]]):
        self._pods = pods
        self.requested: list[str] = []

    async def adapter_get_pod(self, pod_name: str) -> dict[str, Any]:
        """Return the stored pod or fail like the adapter does.

        Args:
            pod_name: Pod resource name.

        Returns:
            dict[str, Any]: Stored pod resource.

        Raises:
            FrameworkTransportError: Raised when the pod is not stored.
        """

        self.requested.append(pod_name)
        if pod_name not in self._pods:
            raise FrameworkTransportError(f"pod {pod_name} lookup returned HTTP 404", status_code=404)
        return self._pods[pod_name]


def _build_settings(**overrides: Any) -> AppSettings:
    """Create test settings object.

    Args:
        overrides: Settings fields replacing defaults.

    Returns:
        AppSettings: Deterministic test settings.

    Raises:
        ValueError: Raised by AppSettings when values are invalid.
    """

    return AppSettings(environment_name="test", launcher_api_server_uri="http://k8s.test", **overrides)


def _build_exit_spec_table() -> ExitSpecTable:
    """Create a minimal exit-spec table.

    Returns:
        ExitSpecTable: Table with fallback entries.

    Raises:
        ExitSpecLoadError: Raised when entries are malformed.
    """

    return ExitSpecTable([{"code": 256, "phrase": "Unknown"}, {"code": -8000, "phrase": "PlatformUnknown"}])


def _build_task_status(index: int, pod_name: str, state: str = "AttemptRunning") -> dict[str, Any]:
    """Create one task status block.

    Args:
        index: Task index.
        pod_name: Pod name of the current attempt.
        state: Task state.

    Returns:
        dict[str, Any]: Task status as reported by the controller.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        "index": index,
        "state": state,
        "retryPolicyStatus": {"retryDelaySec": None},
        "attemptStatus": {
            "podName": pod_name,
            "podUID": f"uid-{index}",
            "podHostIP": f"10.0.0.{index + 1}",
            "completionStatus": None,
        },
    }


def _build_framework() -> dict[str, Any]:
    """Create a completed framework with one failed task role.

    Returns:
        dict[str, Any]: Framework resource.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    diagnostics = "PodFailed, matched: " + json.dumps(
        {"containers": [{"name": "app", "code": 1, "message": "[PAI_RUNTIME_ERROR_START]\nreason: boom\n[PAI_RUNTIME_ERROR_END]"}]}
    )
    return {
        "metadata": {
            "name": "encodedname",
            "creationTimestamp": "2020-01-01T00:00:00Z",
            "labels": {"jobName": "mnist", "userName": "alice", "virtualCluster": "vc1"},
            "annotations": {"totalGpuNumber": "2"},
        },
        "spec": {
            "executionType": "Start",
            "taskRoles": [
                {
                    "name": "worker",
                    "task": {
                        "pod": {
                            "metadata": {
                                "annotations": {
                                    "rest-server/port-scheduling-spec": json.dumps(
                                        {"ssh": {"start": 20000, "count": 1}, "tb": {"start": 30000, "count": 2}}
                                    )
                                }
                            }
                        }
                    },
                }
            ],
        },
        "status": {
            "state": "Completed",
            "completionTime": "2020-01-01T00:01:00Z",
            "retryPolicyStatus": {"totalRetriedCount": 3, "accountableRetriedCount": 1, "retryDelaySec": None},
            "attemptStatus": {
                "instanceUID": "attempt-uid",
                "completionStatus": {
                    "code": 1,
                    "diagnostics": diagnostics,
                    "type": {"name": "Failed"},
                    "trigger": {"message": "task failed", "taskRoleName": "worker", "taskIndex": 1},
                },
                "taskRoleStatuses": [
                    {
                        "name": "worker",
                        "taskStatuses": [_build_task_status(0, "pod-0"), _build_task_status(1, "pod-1")],
                    }
                ],
            },
        },
    }


def test_jobs_convert_framework_summary() -> None:
    """Summarize identity, state, retries, timestamps and totals.

    Returns:
        None: Assertions validate summary fields.

    Raises:
        AssertionError: Raised when summary fields are wrong.
    """

    summary = job_convert_framework_summary(_build_framework())
    payload = summary.to_payload()

    assert summary.name == "mnist"
    assert summary.state is JobState.FAILED
    assert payload["frameworkName"] == "encodedname"
    assert payload["username"] == "alice"
    assert payload["subState"] == "Completed"
    assert payload["executionType"] == "START"
    assert payload["retries"] == 3
    assert payload["retryDetails"] == {"user": 1, "platform": 2, "resource": 0}
    assert payload["createdTime"] == 1577836800000
    assert payload["completedTime"] == 1577836860000
    assert payload["appExitCode"] == 1
    assert payload["virtualCluster"] == "vc1"
    assert payload["totalGpuNumber"] == "2"
    assert payload["totalTaskNumber"] == 2
    assert payload["totalTaskRoleNumber"] == 1


def test_jobs_convert_framework_summary_tolerates_missing_blocks() -> None:
    """Degrade to unknown labels and empty counts for bare frameworks.

    Returns:
        None: Assertions validate defaults.

    Raises:
        AssertionError: Raised when missing blocks break conversion.
    """

    summary = job_convert_framework_summary({"metadata": {"name": "foreign"}})

    assert summary.name == "foreign"
    assert summary.username == "unknown"
    assert summary.virtual_cluster == "unknown"
    assert summary.state is JobState.UNKNOWN
    assert summary.created_time is None
    assert summary.total_task_number == 0


def test_jobs_convert_framework_detail_builds_tasks_and_exit_info() -> None:
    """Build task placement, ports, logs and exit messages for the detail view.

    Returns:
        None: Assertions validate detail payload.

    Raises:
        AssertionError: Raised when detail conversion is wrong.
    """

    pod_lookup = _PodLookupStub(
        {"pod-0": {"spec": {"containers": [{"resources": {"limits": {"nvidia.com/gpu": 2}}}]}}}
    )

    detail = asyncio.run(
        job_convert_framework_detail(_build_framework(), pod_lookup, _build_exit_spec_table(), _build_settings())
    )
    payload = detail.to_payload()
    job_status = payload["jobStatus"]
    tasks = payload["taskRoles"]["worker"]["taskStatuses"]

    assert payload["name"] == "mnist"
    assert job_status["state"] == "FAILED"
    assert job_status["appId"] == "attempt-uid"
    assert job_status["appProgress"] == 1
    assert job_status["appExitSpec"] == {"code": 1, "phrase": "Unknown"}
    assert job_status["appExitMessages"]["runtime"] == {"reason": "boom", "name": "app"}
    assert job_status["appExitMessages"]["launcher"] is None
    assert job_status["appExitTriggerTaskIndex"] == 1
    assert job_status["appExitType"] == "Failed"
    assert sorted(pod_lookup.requested) == ["pod-0", "pod-1"]

    assert tasks[0]["taskState"] == "RUNNING"
    assert tasks[0]["containerGpus"] == 3
    assert tasks[0]["containerPorts"] == {"ssh": 20000, "tb": 30000}
    assert tasks[0]["containerLog"] == "http://10.0.0.1:9103/log-manager/tail/alice/mnist/worker/uid-0/"
    assert tasks[0]["containerId"] == "uid-0"
    assert tasks[0]["containerIp"] == "10.0.0.1"
    assert tasks[1]["containerId"] is None
    assert tasks[1]["containerIp"] is None
    assert tasks[1]["containerPorts"] is None
    assert tasks[1]["containerGpus"] is None
    assert tasks[1]["containerLog"] == "http://10.0.0.2:9103/log-manager/tail/alice/mnist/worker/uid-1/"


def test_jobs_convert_framework_detail_without_completion() -> None:
    """Leave exit fields empty while the framework has not completed.

    Returns:
        None: Assertions validate running detail payload.

    Raises:
        AssertionError: Raised when exit fields are filled too early.
    """

    framework = _build_framework()
    framework["status"]["state"] = "AttemptRunning"
    framework["status"]["attemptStatus"]["completionStatus"] = None

    detail = asyncio.run(
        job_convert_framework_detail(framework, _PodLookupStub({}), _build_exit_spec_table(), _build_settings())
    )
    job_status = detail.to_payload()["jobStatus"]

    assert job_status["state"] == "RUNNING"
    assert job_status["appProgress"] == 0
    assert job_status["appExitSpec"] is None
    assert job_status["appExitDiagnostics"] is None
    assert job_status["appExitMessages"] is None


def test_jobs_convert_container_gpus_bitmask() -> None:
    """Derive GPU bitmasks from isolation annotations or GPU limits.

    Returns:
        None: Assertions validate bitmask calculation.

    Raises:
        AssertionError: Raised when bitmasks are wrong.
    """

    isolated_pod = {"metadata": {"annotations": {"hivedscheduler.microsoft.com/pod-gpu-isolation": "0,2,3"}}}
    limited_pod = {"spec": {"containers": [{"resources": {"limits": {"nvidia.com/gpu": "4"}}}]}}

    assert job_convert_container_gpus(isolated_pod, hived_enabled=True) == 13
    assert job_convert_container_gpus(limited_pod, hived_enabled=False) == 15


def test_jobs_convert_container_ports_tolerates_bad_specs() -> None:
    """Return no ports for absent or malformed port specs.

    Returns:
        None: Assertions validate port fallbacks.

    Raises:
        AssertionError: Raised when malformed specs raise.
    """

    assert job_convert_container_ports(None, 0) == {}
    assert job_convert_container_ports("{not json", 0) == {}
    assert job_convert_container_ports(json.dumps({"ssh": {"start": 1}}), 0) == {}
    assert job_convert_container_ports(json.dumps({"ssh": {"start": 100, "count": 3}}), None) == {}


def test_jobs_convert_retry_details_and_timestamps() -> None:
    """Split retry counts and parse RFC 3339 timestamps.

    Returns:
        None: Assertions validate helper conversions.

    Raises:
        AssertionError: Raised when helpers convert incorrectly.
    """

    assert job_convert_retry_details({}).to_payload() == {"user": None, "platform": None, "resource": 0}
    assert job_convert_retry_details({"totalRetriedCount": 5, "accountableRetriedCount": 5}).platform == 0
    assert job_convert_timestamp_ms("1970-01-01T00:00:01Z") == 1000
    assert job_convert_timestamp_ms("1970-01-01T00:00:01") == 1000
    assert job_convert_timestamp_ms("yesterday") is None
    assert job_convert_timestamp_ms(None) is None


class _TimingOutPodLookupStub:
    """Pod lookup double whose requests always time out."""

    async def adapter_get_pod(self, pod_name: str) -> dict[str, Any]:
        """Raise a builtin timeout for every pod.

        Args:
            pod_name: Pod resource name.

        Returns:
            dict[str, Any]: This method does not return.

        Raises:
            TimeoutError: Always raised by this stub.
        """

        raise TimeoutError("pod lookup timed out")


class _ConcurrencyPodLookupStub:
    """Pod lookup double tracking how many lookups are in flight at once."""

    def __init__(self):
        self.in_flight = 0
        self.max_in_flight = 0
        self.requested: list[str] = []

    async def adapter_get_pod(self, pod_name: str) -> dict[str, Any]:
        """Yield to the event loop while counting concurrent lookups.

        Args:
            pod_name: Pod resource name.

        Returns:
            dict[str, Any]: Pod with a zero GPU limit.

        Raises:
            RuntimeError: This stub does not raise runtime errors.
        """

        self.requested.append(pod_name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        self.in_flight -= 1
        return {"spec": {"containers": [{"resources": {"limits": {"nvidia.com/gpu": 0}}}]}}


def test_jobs_convert_framework_detail_tolerates_non_numeric_exit_code() -> None:
    """Fall back to the negative exit spec when the controller reports a string code.

    Returns:
        None: Assertions validate exit fields for a malformed code.

    Raises:
        AssertionError: Raised when a malformed code breaks the detail view.
    """

    framework = _build_framework()
    framework["status"]["attemptStatus"]["completionStatus"]["code"] = "137"

    detail = asyncio.run(
        job_convert_framework_detail(framework, _PodLookupStub({}), _build_exit_spec_table(), _build_settings())
    )
    job_status = detail.to_payload()["jobStatus"]

    assert job_status["state"] == "FAILED"
    assert job_status["appExitCode"] == "137"
    assert job_status["appExitSpec"] == {"code": "137", "phrase": "PlatformUnknown"}


def test_jobs_convert_framework_detail_isolates_lookup_timeouts() -> None:
    """Clear placement fields when pod lookups time out instead of failing the detail view.

    Returns:
        None: Assertions validate per-task placement fallbacks.

    Raises:
        AssertionError: Raised when a lookup timeout escapes conversion.
    """

    detail = asyncio.run(
        job_convert_framework_detail(
            _build_framework(), _TimingOutPodLookupStub(), _build_exit_spec_table(), _build_settings()
        )
    )
    tasks = detail.to_payload()["taskRoles"]["worker"]["taskStatuses"]

    assert len(tasks) == 2
    for task in tasks:
        assert task["containerId"] is None
        assert task["containerIp"] is None
        assert task["containerPorts"] is None
        assert task["containerGpus"] is None
    assert tasks[0]["containerLog"] == "http://10.0.0.1:9103/log-manager/tail/alice/mnist/worker/uid-0/"


def test_jobs_convert_framework_detail_looks_up_all_roles_concurrently() -> None:
    """Issue pod lookups of every task role together and keep tasks under their own role.

    Returns:
        None: Assertions validate the fan-out and the role split.

    Raises:
        AssertionError: Raised when roles are looked up one after another or mixed up.
    """

    framework = _build_framework()
    framework["status"]["attemptStatus"]["taskRoleStatuses"] = [
        {"name": "worker", "taskStatuses": [_build_task_status(0, "worker-0")]},
        {"name": "ps", "taskStatuses": [_build_task_status(0, "ps-0"), _build_task_status(1, "ps-1")]},
    ]
    pod_lookup = _ConcurrencyPodLookupStub()

    detail = asyncio.run(
        job_convert_framework_detail(framework, pod_lookup, _build_exit_spec_table(), _build_settings())
    )
    task_roles = detail.to_payload()["taskRoles"]

    assert pod_lookup.max_in_flight == 3
    assert sorted(pod_lookup.requested) == ["ps-0", "ps-1", "worker-0"]
    assert list(task_roles) == ["worker", "ps"]
    assert [task["taskIndex"] for task in task_roles["worker"]["taskStatuses"]] == [0]
    assert [task["taskIndex"] for task in task_roles["ps"]["taskStatuses"]] == [0, 1]
    assert task_roles["worker"]["taskStatuses"][0]["containerPorts"] == {"ssh": 20000, "tb": 30000}
    assert task_roles["ps"]["taskStatuses"][1]["containerPorts"] == {}
    assert task_roles["ps"]["taskStatuses"][1]["containerGpus"] == 0
