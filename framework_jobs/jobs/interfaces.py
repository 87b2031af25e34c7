"""Typed interfaces for job-layer responsibilities."""

from typing import Any, Mapping, Protocol

from framework_jobs.domain import JobDetail, JobSummary


class JobServicePort(Protocol):
    """Port definition for request-boundary job operations."""

    async def job_list(self) -> list[JobSummary]:
        """List all jobs, newest first.

        Returns:
            list[JobSummary]: Job summaries.

        Raises:
            RuntimeError: Raised when the orchestrator answers unexpectedly.
        """

    async def job_get(self, framework_name: str) -> JobDetail:
        """Fetch the detail view of one job.

        Args:
            framework_name: Job identifier in `user~job` form.

        Returns:
            JobDetail: Job detail view.

        Raises:
            LookupError: Raised when the job does not exist.
        """

    async def job_put(self, framework_name: str, config: Mapping[str, Any], raw_config: str) -> None:
        """Compile and submit one job.

        Args:
            framework_name: Job identifier in `user~job` form.
            config: Parsed job config.
            raw_config: Original config text.

        Returns:
            None: Submission has no return payload.

        Raises:
            PermissionError: Raised when the user may not use the virtual cluster.
        """

    async def job_execute(self, framework_name: str, execution_type: str) -> None:
        """Change the execution type of one job.

        Args:
            framework_name: Job identifier in `user~job` form.
            execution_type: Requested execution type.

        Returns:
            None: Patch has no return payload.

        Raises:
            RuntimeError: Raised when the orchestrator answers unexpectedly.
        """

    async def job_get_config(self, framework_name: str) -> Any:
        """Return the parsed config a job was submitted with.

        Args:
            framework_name: Job identifier in `user~job` form.

        Returns:
            Any: Parsed job config.

        Raises:
            LookupError: Raised when the job or its config does not exist.
        """

    async def job_get_ssh_info(self, framework_name: str) -> None:
        """Return SSH info of one job.

        Args:
            framework_name: Job identifier in `user~job` form.

        Returns:
            None: This operation does not return.

        Raises:
            LookupError: Raised because SSH info is not available.
        """
