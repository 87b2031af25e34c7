"""Job-wide runtime environment variables injected into every task container."""

from __future__ import annotations

from typing import Any, Mapping

from framework_jobs.domain import domain_name_convert, domain_name_split_framework_name

_JOB_RUNTIME_ENV_DEFAULT_SHM_MB = 512


def job_runtime_env_generate(framework_name: str, config: Mapping[str, Any]) -> dict[str, str]:
    """Build runtime environment variables describing the whole job.

    Args:
        framework_name: Job identifier in `user~job` form.
        config: Parsed job config.

    Returns:
        dict[str, str]: Environment variable names mapped to string values, in insertion order.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    user_name, job_name = domain_name_split_framework_name(framework_name)
    task_roles: Mapping[str, Any] = config.get("taskRoles") or {}
    converted_task_role_names = [domain_name_convert(task_role) for task_role in task_roles]

    runtime_env: dict[str, str] = {
        "PAI_JOB_NAME": job_name,
        "PAI_USER_NAME": user_name,
        "PAI_JOB_RETRY_COUNT": str(config.get("jobRetryCount") or 0),
        "PAI_TASK_ROLE_COUNT": str(len(task_roles)),
        "PAI_TASK_ROLE_LIST": ",".join(converted_task_role_names),
    }

    for task_role, converted_name in zip(task_roles, converted_task_role_names):
        task_role_config = task_roles[task_role] or {}
        resource = task_role_config.get("resourcePerInstance") or {}
        extra_options = task_role_config.get("extraContainerOptions") or {}
        completion = task_role_config.get("completion") or {}
        shm_mb = extra_options.get("shmMB") or _JOB_RUNTIME_ENV_DEFAULT_SHM_MB

        runtime_env[f"PAI_TASK_ROLE_TASK_COUNT_{converted_name}"] = str(task_role_config.get("instances") or 1)
        runtime_env[f"PAI_RESOURCE_{converted_name}"] = ",".join(
            str(value)
            for value in (
                resource.get("gpu", 0),
                resource.get("cpu", 0),
                resource.get("memoryMB", 0),
                shm_mb,
            )
        )
        runtime_env[f"PAI_MIN_FAILED_TASK_COUNT_{converted_name}"] = str(completion.get("minFailedInstances") or 1)
        runtime_env[f"PAI_MIN_SUCCEEDED_TASK_COUNT_{converted_name}"] = str(
            completion.get("minSucceededInstances") or -1
        )

    return runtime_env
