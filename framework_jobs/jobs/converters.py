"""Conversion of framework resources into job summary and detail views.

Framework status originates outside this service, so every accessor below
tolerates missing blocks and degrades to None or `JobState.UNKNOWN`.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from framework_jobs.adapters import PodLookupPort
from framework_jobs.config import AppSettings
from framework_jobs.domain import (
    ExitSpecTable,
    JobDetail,
    JobStatusDetail,
    JobSummary,
    RetryDetails,
    TaskDetail,
    TaskPlacement,
    TaskRoleDetail,
    domain_diagnostics_extract,
    domain_name_decode,
    domain_state_translate,
)

from .spec_compiler import GPU_RESOURCE_NAME, HIVED_POD_GPU_ISOLATION_ANNOTATION, PORT_SCHEDULING_SPEC_ANNOTATION

logger = logging.getLogger(__name__)

_JOB_CONVERT_UNKNOWN_LABEL = "unknown"


def job_convert_framework_summary(framework: Mapping[str, Any]) -> JobSummary:
    """Build the summary view of one framework.

    Args:
        framework: Framework resource returned by the controller.

    Returns:
        JobSummary: Summary view.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    metadata = _job_convert_mapping(framework.get("metadata"))
    labels = _job_convert_mapping(metadata.get("labels"))
    annotations = _job_convert_mapping(metadata.get("annotations"))
    framework_status = _job_convert_mapping(framework.get("status"))
    attempt_status = _job_convert_mapping(framework_status.get("attemptStatus"))
    retry_status = _job_convert_mapping(framework_status.get("retryPolicyStatus"))
    completion_status = _job_convert_mapping(attempt_status.get("completionStatus"))
    task_role_statuses = _job_convert_list(attempt_status.get("taskRoleStatuses"))
    exit_code = completion_status.get("code")

    return JobSummary(
        name=domain_name_decode(metadata.get("name", ""), labels),
        framework_name=metadata.get("name", ""),
        username=labels.get("userName", _JOB_CONVERT_UNKNOWN_LABEL),
        state=domain_state_translate(framework_status.get("state"), exit_code, retry_status.get("retryDelaySec")),
        sub_state=framework_status.get("state"),
        execution_type=_job_convert_execution_type(framework),
        retries=retry_status.get("totalRetriedCount"),
        retry_details=job_convert_retry_details(retry_status),
        retry_delay_time=retry_status.get("retryDelaySec"),
        created_time=job_convert_timestamp_ms(metadata.get("creationTimestamp")),
        completed_time=job_convert_timestamp_ms(framework_status.get("completionTime")),
        app_exit_code=exit_code,
        virtual_cluster=labels.get("virtualCluster", _JOB_CONVERT_UNKNOWN_LABEL),
        total_gpu_number=annotations.get("totalGpuNumber", 0),
        total_task_number=sum(
            len(_job_convert_list(_job_convert_mapping(task_role_status).get("taskStatuses")))
            for task_role_status in task_role_statuses
        ),
        total_task_role_number=len(task_role_statuses),
    )


async def job_convert_framework_detail(
    framework: Mapping[str, Any],
    pod_lookup: PodLookupPort,
    exit_spec_table: ExitSpecTable,
    settings: AppSettings,
) -> JobDetail:
    """Build the detail view of one framework.

    Pod lookups for all tasks are issued concurrently. A failed lookup only
    clears the placement fields of its own task.

    Args:
        framework: Framework resource returned by the controller.
        pod_lookup: Pod lookup port used for per-task placement info.
        exit_spec_table: Exit-code classification table.
        settings: Runtime settings for scheduling mode and log URLs.

    Returns:
        JobDetail: Detail view.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    metadata = _job_convert_mapping(framework.get("metadata"))
    labels = _job_convert_mapping(metadata.get("labels"))
    framework_spec = _job_convert_mapping(framework.get("spec"))
    framework_status = _job_convert_mapping(framework.get("status"))
    attempt_status = _job_convert_mapping(framework_status.get("attemptStatus"))
    retry_status = _job_convert_mapping(framework_status.get("retryPolicyStatus"))
    completion_status = _job_convert_mapping(attempt_status.get("completionStatus"))
    trigger = _job_convert_mapping(completion_status.get("trigger"))
    exit_code = completion_status.get("code")
    created_time = job_convert_timestamp_ms(metadata.get("creationTimestamp"))
    completed_time = job_convert_timestamp_ms(framework_status.get("completionTime"))

    user_name = labels.get("userName", _JOB_CONVERT_UNKNOWN_LABEL)
    job_name = domain_name_decode(metadata.get("name", ""), labels)

    job_status = JobStatusDetail(
        username=user_name,
        state=domain_state_translate(framework_status.get("state"), exit_code, retry_status.get("retryDelaySec")),
        sub_state=framework_status.get("state"),
        execution_type=_job_convert_execution_type(framework),
        retries=retry_status.get("totalRetriedCount"),
        retry_details=job_convert_retry_details(retry_status),
        retry_delay_time=retry_status.get("retryDelaySec"),
        created_time=created_time,
        completed_time=completed_time,
        app_id=attempt_status.get("instanceUID"),
        app_progress=1 if completion_status else 0,
        app_tracking_url="",
        app_launched_time=created_time,
        app_completed_time=completed_time,
        app_exit_code=exit_code,
        app_exit_spec=exit_spec_table.resolve(exit_code) if completion_status else None,
        app_exit_diagnostics=domain_diagnostics_extract(completion_status.get("diagnostics")),
        app_exit_trigger_message=trigger.get("message"),
        app_exit_trigger_task_role_name=trigger.get("taskRoleName"),
        app_exit_trigger_task_index=trigger.get("taskIndex"),
        app_exit_type=_job_convert_mapping(completion_status.get("type")).get("name"),
        virtual_cluster=labels.get("virtualCluster", _JOB_CONVERT_UNKNOWN_LABEL),
    )

    port_specs: dict[str, Any] = {}
    for task_role_spec in _job_convert_list(framework_spec.get("taskRoles")):
        task_role_spec = _job_convert_mapping(task_role_spec)
        pod_metadata = _job_convert_mapping(
            _job_convert_mapping(_job_convert_mapping(task_role_spec.get("task")).get("pod")).get("metadata")
        )
        port_specs[task_role_spec.get("name")] = _job_convert_mapping(pod_metadata.get("annotations")).get(
            PORT_SCHEDULING_SPEC_ANNOTATION
        )

    task_role_entries: list[tuple[str, Mapping[str, Any]]] = []
    task_details_by_role: dict[str, list[TaskDetail]] = {}
    for task_role_status in _job_convert_list(attempt_status.get("taskRoleStatuses")):
        task_role_status = _job_convert_mapping(task_role_status)
        task_role_name = task_role_status.get("name")
        task_details_by_role[task_role_name] = []
        task_role_entries.extend(
            (task_role_name, _job_convert_mapping(task_status))
            for task_status in _job_convert_list(task_role_status.get("taskStatuses"))
        )

    task_details = await asyncio.gather(
        *(
            job_convert_task_detail(
                task_status=task_status,
                port_spec=port_specs.get(task_role_name),
                user_name=user_name,
                job_name=job_name,
                task_role_name=task_role_name,
                pod_lookup=pod_lookup,
                settings=settings,
            )
            for task_role_name, task_status in task_role_entries
        )
    )
    for (task_role_name, _task_status), task_detail in zip(task_role_entries, task_details):
        task_details_by_role[task_role_name].append(task_detail)
    task_roles = {
        task_role_name: TaskRoleDetail(name=task_role_name, task_statuses=role_task_details)
        for task_role_name, role_task_details in task_details_by_role.items()
    }

    return JobDetail(
        name=job_name,
        framework_name=metadata.get("name", ""),
        job_status=job_status,
        task_roles=task_roles,
    )


async def job_convert_task_detail(
    task_status: Mapping[str, Any],
    port_spec: str | None,
    user_name: str,
    job_name: str,
    task_role_name: str,
    pod_lookup: PodLookupPort,
    settings: AppSettings,
) -> TaskDetail:
    """Build the detail view of one task.

    Args:
        task_status: Task status reported by the controller.
        port_spec: Port scheduling spec annotation of the task role.
        user_name: Job owner.
        job_name: Decoded job name.
        task_role_name: Task role of the task.
        pod_lookup: Pod lookup port used for placement info.
        settings: Runtime settings for scheduling mode and log URLs.

    Returns:
        TaskDetail: Task detail view.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    task_index = task_status.get("index")
    task_attempt_status = _job_convert_mapping(task_status.get("attemptStatus"))
    task_retry_status = _job_convert_mapping(task_status.get("retryPolicyStatus"))
    completion_status = _job_convert_mapping(task_attempt_status.get("completionStatus"))
    exit_code = completion_status.get("code")
    pod_uid = task_attempt_status.get("podUID")
    pod_host_ip = task_attempt_status.get("podHostIP")

    placement = await job_convert_lookup_placement(
        pod_name=task_attempt_status.get("podName"),
        pod_lookup=pod_lookup,
        hived_enabled=settings.launcher_hived_enabled,
        container_id=pod_uid,
        container_ip=pod_host_ip,
        container_ports=job_convert_container_ports(port_spec, task_index),
    )

    return TaskDetail(
        task_index=task_index,
        task_state=domain_state_translate(task_status.get("state"), exit_code, task_retry_status.get("retryDelaySec")),
        container_id=placement.container_id,
        container_ip=placement.container_ip,
        container_ports=placement.container_ports,
        container_gpus=placement.container_gpus,
        container_log=(
            f"http://{pod_host_ip}:{settings.log_manager_port}/log-manager/tail/"
            f"{user_name}/{job_name}/{task_role_name}/{pod_uid}/"
        ),
        container_exit_code=exit_code,
    )


async def job_convert_lookup_placement(
    pod_name: str | None,
    pod_lookup: PodLookupPort,
    hived_enabled: bool,
    container_id: str | None,
    container_ip: str | None,
    container_ports: dict[str, int],
) -> TaskPlacement:
    """Fetch the pod of a task and assemble its placement info.

    Args:
        pod_name: Pod name of the current task attempt.
        pod_lookup: Pod lookup port.
        hived_enabled: Whether GPU isolation scheduling is enabled.
        container_id: Pod UID reported in the task status.
        container_ip: Host IP reported in the task status.
        container_ports: Ports recomputed from the stored port table.

    Returns:
        TaskPlacement: Placement info, all fields None when the lookup or parsing fails.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if not pod_name:
        return TaskPlacement()
    try:
        pod = await pod_lookup.adapter_get_pod(pod_name)
        return TaskPlacement(
            container_id=container_id,
            container_ip=container_ip,
            container_ports=container_ports,
            container_gpus=job_convert_container_gpus(pod, hived_enabled),
        )
    except Exception as error:
        logger.debug("placement lookup failed for pod %s: %s", pod_name, error)
        return TaskPlacement()


def job_convert_container_gpus(pod: Mapping[str, Any], hived_enabled: bool) -> int:
    """Derive the GPU bitmask of a task container from its pod.

    Args:
        pod: Pod resource.
        hived_enabled: Whether GPU isolation scheduling is enabled.

    Returns:
        int: GPU bitmask.

    Raises:
        KeyError: Raised when the pod lacks the expected annotation or limits.
        ValueError: Raised when GPU values are not integers.
    """

    if hived_enabled:
        isolation = pod["metadata"]["annotations"][HIVED_POD_GPU_ISOLATION_ANNOTATION]
        gpu_bitmask = 0
        for gpu_index in str(isolation).split(","):
            gpu_bitmask |= 2 ** int(gpu_index)
        return gpu_bitmask

    gpu_number = int(pod["spec"]["containers"][0]["resources"]["limits"][GPU_RESOURCE_NAME])
    # GPU ids are not reported without isolation scheduling.
    return 2**gpu_number - 1


def job_convert_container_ports(port_spec: str | None, task_index: int | None) -> dict[str, int]:
    """Recompute the concrete ports of one task from the stored port table.

    Args:
        port_spec: JSON port scheduling spec annotation.
        task_index: Index of the task inside its role.

    Returns:
        dict[str, int]: Port name mapped to the task port, empty when the port table is unusable.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if not port_spec or not isinstance(task_index, int):
        return {}
    try:
        port_table = json.loads(port_spec)
        return {
            name: int(allocation["start"]) + task_index * int(allocation["count"])
            for name, allocation in port_table.items()
        }
    except (ValueError, TypeError, KeyError, AttributeError) as error:
        logger.warning("port scheduling spec is malformed: %s", error)
        return {}


def job_convert_retry_details(retry_status: Mapping[str, Any]) -> RetryDetails:
    """Split retries into user-caused and platform-caused counts.

    Args:
        retry_status: Retry policy status block.

    Returns:
        RetryDetails: Retry breakdown, resource retries always 0.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    total_retried = retry_status.get("totalRetriedCount")
    accountable_retried = retry_status.get("accountableRetriedCount")
    platform_retried = None
    if isinstance(total_retried, int) and isinstance(accountable_retried, int):
        platform_retried = total_retried - accountable_retried
    return RetryDetails(user=accountable_retried, platform=platform_retried, resource=0)


def job_convert_timestamp_ms(value: object) -> int | None:
    """Convert an RFC 3339 timestamp to epoch milliseconds.

    Args:
        value: Timestamp text such as `2020-01-01T00:00:00Z`.

    Returns:
        int | None: Epoch milliseconds, None when absent or unparsable.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if not isinstance(value, str) or not value.strip():
        return None
    normalized_value = value.strip()
    if normalized_value.endswith("Z"):
        normalized_value = f"{normalized_value[:-1]}+00:00"
    try:
        parsed_value = datetime.fromisoformat(normalized_value)
    except ValueError:
        return None
    if parsed_value.tzinfo is None:
        parsed_value = parsed_value.replace(tzinfo=timezone.utc)
    return int(parsed_value.timestamp() * 1000)


def _job_convert_execution_type(framework: Mapping[str, Any]) -> str | None:
    execution_type = _job_convert_mapping(framework.get("spec")).get("executionType")
    return execution_type.upper() if isinstance(execution_type, str) else None


def _job_convert_mapping(value: object) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _job_convert_list(value: object) -> list[Any]:
    return value if isinstance(value, list) else []
