"""Job service translating job requests into framework controller calls."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx
import yaml

from framework_jobs.adapters import (
    AdapterResponse,
    ForbiddenUserError,
    FrameworkControllerPort,
    NoJobConfigError,
    NoJobError,
    NoJobSshInfoError,
    PodLookupPort,
    UnknownError,
    VirtualClusterAuthorizerPort,
)
from framework_jobs.config import AppSettings
from framework_jobs.domain import (
    ExitSpecTable,
    JobDetail,
    JobSummary,
    domain_name_encode,
    domain_name_split_framework_name,
)

from .converters import job_convert_framework_detail, job_convert_framework_summary
from .spec_compiler import FrameworkSpecCompiler

logger = logging.getLogger(__name__)

_JOB_SERVICE_DEFAULT_VIRTUAL_CLUSTER = "default"


class FrameworkJobService:
    """Request-boundary operations on framework jobs."""

    def __init__(
        self,
        settings: AppSettings,
        framework_controller: FrameworkControllerPort,
        pod_lookup: PodLookupPort,
        authorizer: VirtualClusterAuthorizerPort,
        compiler: FrameworkSpecCompiler,
        exit_spec_table: ExitSpecTable,
    ):
        """Initialize job service dependencies.

        Args:
            settings: Validated runtime settings.
            framework_controller: Adapter for framework CRUD.
            pod_lookup: Adapter for per-task pod lookups.
            authorizer: Virtual-cluster authorization port.
            compiler: Framework description compiler.
            exit_spec_table: Exit-code classification table.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies are missing.
        """

        if settings is None:
            raise ValueError("settings must not be None")
        if framework_controller is None:
            raise ValueError("framework_controller must not be None")
        if pod_lookup is None:
            raise ValueError("pod_lookup must not be None")
        if authorizer is None:
            raise ValueError("authorizer must not be None")
        if compiler is None:
            raise ValueError("compiler must not be None")
        if exit_spec_table is None:
            raise ValueError("exit_spec_table must not be None")

        self._settings = settings
        self._framework_controller = framework_controller
        self._pod_lookup = pod_lookup
        self._authorizer = authorizer
        self._compiler = compiler
        self._exit_spec_table = exit_spec_table

    async def job_list(self) -> list[JobSummary]:
        """List all framework jobs, newest first.

        Returns:
            list[JobSummary]: Job summaries sorted by creation time descending.

        Raises:
            UnknownError: Raised for non-success controller responses.
            FrameworkTransportError: Raised when the controller cannot be reached.
        """

        response = await self._framework_controller.adapter_list_frameworks()
        if response.status_code != httpx.codes.OK:
            raise self._job_unknown_error(response)

        items = response.payload.get("items") or []
        summaries = [job_convert_framework_summary(framework) for framework in items if isinstance(framework, dict)]
        summaries.sort(key=lambda summary: summary.created_time or 0, reverse=True)
        return summaries

    async def job_get(self, framework_name: str) -> JobDetail:
        """Fetch the detail view of one job.

        Args:
            framework_name: Job identifier in `user~job` form.

        Returns:
            JobDetail: Job detail view.

        Raises:
            NoJobError: Raised when the framework does not exist.
            UnknownError: Raised for other non-success controller responses.
            FrameworkTransportError: Raised when the controller cannot be reached.
        """

        response = await self._framework_controller.adapter_get_framework(domain_name_encode(framework_name))
        if response.status_code == httpx.codes.OK:
            return await job_convert_framework_detail(
                framework=response.payload,
                pod_lookup=self._pod_lookup,
                exit_spec_table=self._exit_spec_table,
                settings=self._settings,
            )
        if response.status_code == httpx.codes.NOT_FOUND:
            raise NoJobError(f"Job {framework_name} is not found.")
        raise self._job_unknown_error(response)

    async def job_put(self, framework_name: str, config: Mapping[str, Any], raw_config: str) -> None:
        """Compile and submit one job.

        Args:
            framework_name: Job identifier in `user~job` form.
            config: Parsed job config.
            raw_config: Original config text.

        Returns:
            None: Submission has no return payload.

        Raises:
            ForbiddenUserError: Raised when the user may not use the virtual cluster.
            ValueError: Raised when the config cannot be compiled.
            UnknownError: Raised when the controller does not answer 201.
            FrameworkTransportError: Raised when the controller cannot be reached.
        """

        user_name, _ = domain_name_split_framework_name(framework_name)
        defaults = config.get("defaults") or {}
        virtual_cluster = defaults.get("virtualCluster")
        if virtual_cluster is None:
            virtual_cluster = _JOB_SERVICE_DEFAULT_VIRTUAL_CLUSTER

        authorized = await self._authorizer.adapter_check_user_virtual_cluster(user_name, virtual_cluster)
        if not authorized:
            raise ForbiddenUserError(f"User {user_name} is not allowed to do operation in {virtual_cluster}")

        framework_description = self._compiler.compiler_build_framework(
            framework_name=framework_name,
            virtual_cluster=virtual_cluster,
            config=config,
            raw_config=raw_config,
        )
        response = await self._framework_controller.adapter_create_framework(framework_description)
        if response.status_code != httpx.codes.CREATED:
            raise self._job_unknown_error(response)
        logger.info("submitted framework %s for job %s", framework_description["metadata"]["name"], framework_name)

    async def job_execute(self, framework_name: str, execution_type: str) -> None:
        """Change the execution type of one job.

        Args:
            framework_name: Job identifier in `user~job` form.
            execution_type: Execution type in any case, such as `STOP`.

        Returns:
            None: Patch has no return payload.

        Raises:
            ValueError: Raised when the execution type is blank.
            UnknownError: Raised when the controller does not answer 200.
            FrameworkTransportError: Raised when the controller cannot be reached.
        """

        normalized_execution_type = execution_type.strip()
        if not normalized_execution_type:
            raise ValueError("execution_type must not be blank")
        capitalized_execution_type = normalized_execution_type[0] + normalized_execution_type[1:].lower()

        response = await self._framework_controller.adapter_patch_execution_type(
            domain_name_encode(framework_name),
            capitalized_execution_type,
        )
        if response.status_code != httpx.codes.OK:
            raise self._job_unknown_error(response)

    async def job_get_config(self, framework_name: str) -> Any:
        """Return the parsed config a job was submitted with.

        Args:
            framework_name: Job identifier in `user~job` form.

        Returns:
            Any: Parsed YAML job config.

        Raises:
            NoJobError: Raised when the framework does not exist.
            NoJobConfigError: Raised when the framework carries no config annotation.
            UnknownError: Raised for other non-success controller responses.
            FrameworkTransportError: Raised when the controller cannot be reached.
        """

        response = await self._framework_controller.adapter_get_framework(domain_name_encode(framework_name))
        if response.status_code == httpx.codes.OK:
            metadata = response.payload.get("metadata") or {}
            annotations = metadata.get("annotations") or {}
            raw_config = annotations.get("config")
            if not raw_config:
                raise NoJobConfigError(f"Config of job {framework_name} is not found.")
            return yaml.safe_load(raw_config)
        if response.status_code == httpx.codes.NOT_FOUND:
            raise NoJobError(f"Job {framework_name} is not found.")
        raise self._job_unknown_error(response)

    async def job_get_ssh_info(self, framework_name: str) -> None:
        """Raise for SSH info, which framework jobs do not provide.

        Args:
            framework_name: Job identifier in `user~job` form.

        Returns:
            None: This method does not return.

        Raises:
            NoJobSshInfoError: Always raised.
        """

        raise NoJobSshInfoError(f"SSH info of job {framework_name} is not found.")

    def _job_unknown_error(self, response: AdapterResponse) -> UnknownError:
        return UnknownError(response.response_message(), status_code=response.status_code)
