"""Typed read views of framework jobs shared across runtime layers.

Views are rebuilt on every query. `to_payload` renders the camelCase wire
shape returned by the HTTP API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .diagnostics import DiagnosticsRecord
from .state import JobState


@dataclass(frozen=True)
class RetryDetails:
    """Retry breakdown by cause.

    Attributes:
        user: Retries caused by the user application.
        platform: Retries caused by the platform.
        resource: Retries caused by resource shortage, not tracked at this layer.
    """

    user: int | None
    platform: int | None
    resource: int = 0

    def to_payload(self) -> dict[str, Any]:
        return {"user": self.user, "platform": self.platform, "resource": self.resource}


@dataclass(frozen=True)
class JobSummary:
    """Summary view of one framework job."""

    name: str
    framework_name: str
    username: str
    state: JobState
    sub_state: str | None
    execution_type: str | None
    retries: int | None
    retry_details: RetryDetails
    retry_delay_time: int | None
    created_time: int | None
    completed_time: int | None
    app_exit_code: int | None
    virtual_cluster: str
    total_gpu_number: int | str
    total_task_number: int
    total_task_role_number: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "frameworkName": self.framework_name,
            "username": self.username,
            "state": self.state.value,
            "subState": self.sub_state,
            "executionType": self.execution_type,
            "retries": self.retries,
            "retryDetails": self.retry_details.to_payload(),
            "retryDelayTime": self.retry_delay_time,
            "createdTime": self.created_time,
            "completedTime": self.completed_time,
            "appExitCode": self.app_exit_code,
            "virtualCluster": self.virtual_cluster,
            "totalGpuNumber": self.total_gpu_number,
            "totalTaskNumber": self.total_task_number,
            "totalTaskRoleNumber": self.total_task_role_number,
        }


@dataclass(frozen=True)
class TaskPlacement:
    """Placement info of one task, all None when its pod cannot be fetched.

    Attributes:
        container_id: Pod UID of the current attempt.
        container_ip: Host IP of the pod.
        container_ports: Concrete ports of the task.
        container_gpus: GPU bitmask of the task container.
    """

    container_id: str | None = None
    container_ip: str | None = None
    container_ports: dict[str, int] | None = None
    container_gpus: int | None = None


@dataclass(frozen=True)
class TaskDetail:
    """Detail view of one task instance."""

    task_index: int | None
    task_state: JobState
    container_id: str | None
    container_ip: str | None
    container_ports: dict[str, int] | None
    container_gpus: int | None
    container_log: str | None
    container_exit_code: int | None

    def to_payload(self) -> dict[str, Any]:
        return {
            "taskIndex": self.task_index,
            "taskState": self.task_state.value,
            "containerId": self.container_id,
            "containerIp": self.container_ip,
            "containerPorts": dict(self.container_ports) if self.container_ports is not None else None,
            "containerGpus": self.container_gpus,
            "containerLog": self.container_log,
            "containerExitCode": self.container_exit_code,
        }


@dataclass(frozen=True)
class TaskRoleDetail:
    """Detail view of one task role and its tasks."""

    name: str
    task_statuses: list[TaskDetail] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "taskRoleStatus": {"name": self.name},
            "taskStatuses": [task.to_payload() for task in self.task_statuses],
        }


@dataclass(frozen=True)
class JobStatusDetail:
    """Job-level status block of the detail view."""

    username: str
    state: JobState
    sub_state: str | None
    execution_type: str | None
    retries: int | None
    retry_details: RetryDetails
    retry_delay_time: int | None
    created_time: int | None
    completed_time: int | None
    app_id: str | None
    app_progress: int
    app_tracking_url: str
    app_launched_time: int | None
    app_completed_time: int | None
    app_exit_code: int | None
    app_exit_spec: dict[str, Any] | None
    app_exit_diagnostics: DiagnosticsRecord | None
    app_exit_trigger_message: str | None
    app_exit_trigger_task_role_name: str | None
    app_exit_trigger_task_index: int | None
    app_exit_type: str | None
    virtual_cluster: str

    def to_payload(self) -> dict[str, Any]:
        diagnostics = self.app_exit_diagnostics
        return {
            "username": self.username,
            "state": self.state.value,
            "subState": self.sub_state,
            "executionType": self.execution_type,
            "retries": self.retries,
            "retryDetails": self.retry_details.to_payload(),
            "retryDelayTime": self.retry_delay_time,
            "createdTime": self.created_time,
            "completedTime": self.completed_time,
            "appId": self.app_id,
            "appProgress": self.app_progress,
            "appTrackingUrl": self.app_tracking_url,
            "appLaunchedTime": self.app_launched_time,
            "appCompletedTime": self.app_completed_time,
            "appExitCode": self.app_exit_code,
            "appExitSpec": self.app_exit_spec,
            "appExitDiagnostics": diagnostics.diagnostics_summary if diagnostics else None,
            "appExitMessages": (
                {"container": None, "runtime": diagnostics.runtime, "launcher": diagnostics.launcher}
                if diagnostics
                else None
            ),
            "appExitTriggerMessage": self.app_exit_trigger_message,
            "appExitTriggerTaskRoleName": self.app_exit_trigger_task_role_name,
            "appExitTriggerTaskIndex": self.app_exit_trigger_task_index,
            "appExitType": self.app_exit_type,
            "virtualCluster": self.virtual_cluster,
        }


@dataclass(frozen=True)
class JobDetail:
    """Detail view of one framework job."""

    name: str
    framework_name: str
    job_status: JobStatusDetail
    task_roles: dict[str, TaskRoleDetail] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "frameworkName": self.framework_name,
            "jobStatus": self.job_status.to_payload(),
            "taskRoles": {name: task_role.to_payload() for name, task_role in self.task_roles.items()},
        }
