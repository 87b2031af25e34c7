"""Compilation of job configs into framework controller resource descriptions."""

from __future__ import annotations

import copy
import json
import random
from dataclasses import dataclass
from typing import Any, Callable, Final, Mapping

import yaml

from framework_jobs.config import AppSettings
from framework_jobs.domain import domain_name_convert, domain_name_encode, domain_name_split_framework_name

from .runtime_env import job_runtime_env_generate

PORT_SCHEDULING_SPEC_ANNOTATION: Final[str] = "rest-server/port-scheduling-spec"
HIVED_POD_SCHEDULING_SPEC_ANNOTATION: Final[str] = "hivedscheduler.microsoft.com/pod-scheduling-spec"
HIVED_POD_GPU_ISOLATION_ANNOTATION: Final[str] = "hivedscheduler.microsoft.com/pod-gpu-isolation"
HIVED_POD_SCHEDULING_ENABLE_RESOURCE: Final[str] = "hivedscheduler.microsoft.com/pod-scheduling-enable"
GPU_RESOURCE_NAME: Final[str] = "nvidia.com/gpu"

COMPILER_PORT_RANGE_START: Final[int] = 20000
COMPILER_PORT_RANGE_END: Final[int] = 40000
COMPILER_DEFAULT_PORTS: Final[tuple[str, ...]] = ("ssh", "http")
COMPILER_DEFAULT_SHM_MB: Final[int] = 512
COMPILER_DISABLED_JOB_RETRY_COUNT: Final[int] = -2

_COMPILER_HOST_LOG_PATH: Final[str] = "/var/log/pai"
_COMPILER_APP_CONTAINER_NAME: Final[str] = "app"


@dataclass(frozen=True)
class PortAllocation:
    """Port range reserved for one named port of a task role.

    Attributes:
        start: Port of the task with index 0.
        count: Contiguous ports reserved per task.
    """

    start: int
    count: int

    def port_for_task(self, task_index: int) -> int:
        return self.start + task_index * self.count


class FrameworkSpecCompiler:
    """Compile a job config into a framework description ready for submission."""

    def __init__(
        self,
        settings: AppSettings,
        random_source: random.Random | None = None,
        runtime_env_generator: Callable[[str, Mapping[str, Any]], Mapping[str, str]] = job_runtime_env_generate,
    ):
        """Initialize compiler dependencies.

        Args:
            settings: Validated runtime settings holding launcher options.
            random_source: Random source for port draws, defaults to the process-wide one.
            runtime_env_generator: Builder of job-wide runtime environment variables.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when settings are missing.
        """

        if settings is None:
            raise ValueError("settings must not be None")

        self._settings = settings
        self._random_source = random_source or random.Random()
        self._runtime_env_generator = runtime_env_generator

    def compiler_build_framework(
        self,
        framework_name: str,
        virtual_cluster: str,
        config: Mapping[str, Any],
        raw_config: str,
    ) -> dict[str, Any]:
        """Compile one job config into a framework description.

        Args:
            framework_name: Job identifier in `user~job` form.
            virtual_cluster: Virtual cluster the job is submitted to.
            config: Parsed job config, left unmodified.
            raw_config: Original config text stored for later retrieval.

        Returns:
            dict[str, Any]: Framework resource description.

        Raises:
            ValueError: Raised when the config has no task roles, references an unknown image
                or declares a non-integer GPU or instance count.
        """

        task_roles = config.get("taskRoles") or {}
        if not task_roles:
            raise ValueError("job config must declare at least one task role")

        user_name, job_name = domain_name_split_framework_name(framework_name)
        framework_labels = {
            "jobName": job_name,
            "userName": user_name,
            "virtualCluster": virtual_cluster,
        }
        job_retry_count = config.get("jobRetryCount")
        framework_description: dict[str, Any] = {
            "apiVersion": self._settings.launcher_api_version,
            "kind": "Framework",
            "metadata": {
                "name": domain_name_encode(framework_name),
                "labels": framework_labels,
                "annotations": {
                    "config": raw_config,
                },
            },
            "spec": {
                "executionType": "Start",
                "retryPolicy": {
                    "fancyRetryPolicy": job_retry_count != COMPILER_DISABLED_JOB_RETRY_COUNT,
                    "maxRetryCount": job_retry_count or 0,
                },
                "taskRoles": [],
            },
        }

        runtime_env = self._runtime_env_generator(framework_name, config)
        env_list = [{"name": name, "value": f"{value}"} for name, value in runtime_env.items()]

        total_gpu_number = 0
        for task_role in task_roles:
            task_role_config = task_roles[task_role] or {}
            resource = task_role_config.get("resourcePerInstance") or {}
            gpu_number = _compiler_count(resource.get("gpu"), f"taskRoles.{task_role}.resourcePerInstance.gpu", 0)
            instances = _compiler_count(task_role_config.get("instances"), f"taskRoles.{task_role}.instances", 1)
            total_gpu_number += gpu_number * instances

            task_role_description = self.compiler_build_task_role(task_role, framework_labels, config)
            task_role_description["task"]["pod"]["spec"]["containers"][0]["env"].extend(
                copy.deepcopy(env_list) + compiler_task_identity_env()
            )
            framework_description["spec"]["taskRoles"].append(task_role_description)

        framework_description["metadata"]["annotations"]["totalGpuNumber"] = f"{total_gpu_number}"
        return framework_description

    def compiler_build_task_role(
        self,
        task_role: str,
        labels: Mapping[str, str],
        config: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Compile one task role into a framework task role description.

        Args:
            task_role: Task role name as declared in the config.
            labels: Framework labels `jobName`, `userName`, `virtualCluster`.
            config: Parsed job config.

        Returns:
            dict[str, Any]: Framework task role description.

        Raises:
            ValueError: Raised when the task role references an unknown image or has a non-integer instance count.
        """

        task_role_config = config["taskRoles"][task_role] or {}
        resource = task_role_config.get("resourcePerInstance") or {}
        converted_name = domain_name_convert(task_role)

        port_allocations = self.compiler_allocate_ports(resource.get("ports"))
        port_scheduling_spec = {
            name: {"start": allocation.start, "count": allocation.count}
            for name, allocation in port_allocations.items()
        }

        extra_container_options = task_role_config.get("extraContainerOptions") or {}
        shm_mb = extra_container_options.get("shmMB") or COMPILER_DEFAULT_SHM_MB

        gang_allocation = "true"
        task_retry_policy = {"fancyRetryPolicy": False, "maxRetryCount": 0}
        extras = config.get("extras") or {}
        if extras.get("gangAllocation") is False:
            gang_allocation = "false"
            task_retry_policy["fancyRetryPolicy"] = True

        log_sub_path = f"{labels['userName']}/{labels['jobName']}/{converted_name}"
        task_role_description: dict[str, Any] = {
            "name": converted_name,
            "taskNumber": _compiler_count(task_role_config.get("instances"), f"taskRoles.{task_role}.instances", 1),
            "task": {
                "retryPolicy": task_retry_policy,
                "podGracefulDeletionTimeoutSec": self._settings.launcher_pod_graceful_deletion_timeout_seconds,
                "pod": {
                    "metadata": {
                        "labels": {
                            **labels,
                            "type": "kube-launcher-task",
                        },
                        "annotations": {
                            "container.apparmor.security.beta.kubernetes.io/app": "unconfined",
                            PORT_SCHEDULING_SPEC_ANNOTATION: json.dumps(port_scheduling_spec),
                        },
                    },
                    "spec": {
                        "privileged": False,
                        "restartPolicy": "Never",
                        "serviceAccountName": "frameworkbarrier-account",
                        "initContainers": [
                            {
                                "name": "init",
                                "imagePullPolicy": "Always",
                                "image": self._settings.launcher_runtime_image,
                                "env": [
                                    {"name": "USER_CMD", "value": task_role_config.get("entrypoint")},
                                    {"name": "KUBE_APISERVER_ADDRESS", "value": self._settings.launcher_api_server_uri},
                                    {"name": "GANG_ALLOCATION", "value": gang_allocation},
                                ],
                                "volumeMounts": [
                                    {"name": "pai-vol", "mountPath": "/usr/local/pai"},
                                    {"name": "host-log", "subPath": log_sub_path, "mountPath": "/usr/local/pai/logs"},
                                    {"name": "job-exit-spec", "mountPath": "/usr/local/pai-config"},
                                ],
                            }
                        ],
                        "containers": [
                            {
                                "name": _COMPILER_APP_CONTAINER_NAME,
                                "image": compiler_resolve_image_uri(config, task_role_config.get("dockerImage")),
                                "command": ["/usr/local/pai/runtime"],
                                "resources": {
                                    "limits": {
                                        "cpu": resource.get("cpu"),
                                        "memory": f"{resource.get('memoryMB')}Mi",
                                        GPU_RESOURCE_NAME: resource.get("gpu"),
                                    },
                                },
                                "env": [],
                                "securityContext": {
                                    "capabilities": {
                                        "add": ["SYS_ADMIN", "IPC_LOCK", "DAC_READ_SEARCH"],
                                        "drop": ["MKNOD"],
                                    },
                                },
                                "terminationMessagePath": "/tmp/pai-termination-log",
                                "volumeMounts": [
                                    {"name": "dshm", "mountPath": "/dev/shm"},
                                    {"name": "pai-vol", "mountPath": "/usr/local/pai"},
                                    {"name": "host-log", "subPath": log_sub_path, "mountPath": "/usr/local/pai/logs"},
                                    {"name": "job-ssh-secret-volume", "readOnly": True, "mountPath": "/usr/local/pai/ssh-secret"},
                                ],
                            }
                        ],
                        "volumes": [
                            {"name": "dshm", "emptyDir": {"medium": "Memory", "sizeLimit": f"{shm_mb}Mi"}},
                            {"name": "pai-vol", "emptyDir": {}},
                            {"name": "host-log", "hostPath": {"path": _COMPILER_HOST_LOG_PATH}},
                            {"name": "job-ssh-secret-volume", "secret": {"secretName": "job-ssh-secret"}},
                            {"name": "job-exit-spec", "configMap": {"name": "runtime-exit-spec-configuration"}},
                        ],
                        "affinity": {
                            "nodeAffinity": {
                                "requiredDuringSchedulingIgnoredDuringExecution": {
                                    "nodeSelectorTerms": [
                                        {
                                            "matchExpressions": [
                                                {"key": "pai-worker", "operator": "In", "values": ["true"]},
                                            ],
                                        },
                                    ],
                                },
                            },
                        },
                        "imagePullSecrets": [{"name": self._settings.launcher_runtime_image_pull_secrets}],
                        "hostNetwork": True,
                    },
                },
            },
        }

        completion = task_role_config.get("completion") or {}
        task_role_description["frameworkAttemptCompletionPolicy"] = {
            "minFailedTaskCount": completion.get("minFailedInstances") or 1,
            "minSucceededTaskCount": completion.get("minSucceededInstances") or -1,
        }

        if self._settings.launcher_hived_enabled:
            self._compiler_apply_hived_scheduling(task_role_description, task_role_config)

        return task_role_description

    def compiler_allocate_ports(self, ports: Mapping[str, int] | None) -> dict[str, PortAllocation]:
        """Draw a random base port for every named port of a task role.

        Collisions across jobs or port names are not detected.

        Args:
            ports: Named ports mapped to the count reserved per task.

        Returns:
            dict[str, PortAllocation]: Allocation per port name, `ssh` and `http` always present.

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        port_counts = dict(ports or {})
        for default_port in COMPILER_DEFAULT_PORTS:
            port_counts.setdefault(default_port, 1)
        return {
            name: PortAllocation(
                start=self._random_source.randrange(COMPILER_PORT_RANGE_START, COMPILER_PORT_RANGE_END),
                count=count,
            )
            for name, count in port_counts.items()
        }

    def _compiler_apply_hived_scheduling(
        self,
        task_role_description: dict[str, Any],
        task_role_config: Mapping[str, Any],
    ) -> None:
        """Route a task role through the GPU isolation scheduler.

        Args:
            task_role_description: Compiled task role description, updated in place.
            task_role_config: Task role section of the job config.

        Returns:
            None: Updates the description as side effect.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        pod = task_role_description["task"]["pod"]
        app_container = pod["spec"]["containers"][0]
        pod["spec"]["schedulerName"] = self._settings.launcher_scheduler_name
        app_container["resources"]["limits"].pop(GPU_RESOURCE_NAME, None)
        app_container["resources"]["limits"][HIVED_POD_SCHEDULING_ENABLE_RESOURCE] = 1
        pod["metadata"]["annotations"][HIVED_POD_SCHEDULING_SPEC_ANNOTATION] = yaml.safe_dump(
            task_role_config.get("hivedPodSpec"),
            default_flow_style=False,
        )
        app_container["env"].append(
            {
                "name": "NVIDIA_VISIBLE_DEVICES",
                "valueFrom": {
                    "fieldRef": {
                        "fieldPath": f"metadata.annotations['{HIVED_POD_GPU_ISOLATION_ANNOTATION}']",
                    },
                },
            }
        )


def compiler_task_identity_env() -> list[dict[str, Any]]:
    """Return task role and index variables sourced from controller annotations.

    Returns:
        list[dict[str, Any]]: Container env entries, including legacy aliases.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return [
        _compiler_annotation_env("PAI_CURRENT_TASK_ROLE_NAME", "FC_TASKROLE_NAME"),
        _compiler_annotation_env("PAI_CURRENT_TASK_ROLE_CURRENT_TASK_INDEX", "FC_TASK_INDEX"),
        # legacy alias
        _compiler_annotation_env("PAI_TASK_INDEX", "FC_TASK_INDEX"),
    ]


def compiler_resolve_image_uri(config: Mapping[str, Any], image_name: str | None) -> str:
    """Resolve the docker image URI a task role refers to.

    Prerequisites are accepted either grouped by type (`{dockerimage: {name: {uri}}}`)
    or as a list of `{type, name, uri}` records.

    Args:
        config: Parsed job config.
        image_name: Docker image prerequisite name of the task role.

    Returns:
        str: Image URI.

    Raises:
        ValueError: Raised when the image prerequisite is not declared.
    """

    prerequisites = config.get("prerequisites") or {}
    if isinstance(prerequisites, Mapping):
        docker_images = prerequisites.get("dockerimage") or {}
        image = docker_images.get(image_name) if isinstance(docker_images, Mapping) else None
    else:
        image = next(
            (
                prerequisite
                for prerequisite in prerequisites
                if isinstance(prerequisite, Mapping)
                and prerequisite.get("type") == "dockerimage"
                and prerequisite.get("name") == image_name
            ),
            None,
        )

    if not isinstance(image, Mapping) or not image.get("uri"):
        raise ValueError(f"docker image prerequisite {image_name!r} is not declared")
    return str(image["uri"])


def _compiler_annotation_env(name: str, annotation: str) -> dict[str, Any]:
    return {
        "name": name,
        "valueFrom": {
            "fieldRef": {
                "fieldPath": f"metadata.annotations['{annotation}']",
            },
        },
    }


def _compiler_count(value: Any, field_name: str, default: int) -> int:
    """Validate a count from the job config.

    Args:
        value: Raw config value.
        field_name: Dotted config path used in the error message.
        default: Count used when the value is absent or zero.

    Returns:
        int: Validated count.

    Raises:
        ValueError: Raised when the value is not a non-negative integer.
    """

    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{field_name} must be a non-negative integer, got {value!r}")
    return value or default
