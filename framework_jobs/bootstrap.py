"""Application bootstrap wiring for startup validation and dependency assembly."""

from fastapi import FastAPI

from framework_jobs.adapters import FrameworkControllerAdapter, StaticVirtualClusterAuthorizer
from framework_jobs.api import create_api_application
from framework_jobs.config import AppSettings, config_configure_logging, config_load_settings
from framework_jobs.domain import ExitSpecTable, exit_spec_resolve_path, exit_spec_table_load
from framework_jobs.jobs import FrameworkJobService, FrameworkSpecCompiler


def bootstrap_load_exit_spec_table(settings: AppSettings) -> ExitSpecTable:
    """Load the exit-spec table from the configured location.

    Args:
        settings: Validated runtime settings.

    Returns:
        ExitSpecTable: Loaded exit-code classification table.

    Raises:
        ExitSpecLoadError: Raised when the exit-spec file is missing or incomplete.
    """

    return exit_spec_table_load(exit_spec_resolve_path(override=settings.exit_spec_path))


def bootstrap_create_job_service(settings: AppSettings) -> tuple[FrameworkJobService, FrameworkControllerAdapter]:
    """Assemble the job service and the controller adapter it uses.

    Args:
        settings: Validated runtime settings.

    Returns:
        tuple[FrameworkJobService, FrameworkControllerAdapter]: Wired job service and adapter.

    Raises:
        ExitSpecLoadError: Raised when the exit-spec file is missing or incomplete.
    """

    exit_spec_table = bootstrap_load_exit_spec_table(settings)
    framework_controller = FrameworkControllerAdapter(settings=settings)
    job_service = FrameworkJobService(
        settings=settings,
        framework_controller=framework_controller,
        pod_lookup=framework_controller,
        authorizer=StaticVirtualClusterAuthorizer(settings.user_virtual_clusters),
        compiler=FrameworkSpecCompiler(settings=settings),
        exit_spec_table=exit_spec_table,
    )
    return job_service, framework_controller


def bootstrap_create_application() -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
        ExitSpecLoadError: Raised when the exit-spec file is missing or incomplete.
    """

    settings = config_load_settings()
    config_configure_logging(settings.log_level)
    job_service, framework_controller = bootstrap_create_job_service(settings)
    return create_api_application(
        settings=settings,
        framework_controller=framework_controller,
        job_service=job_service,
    )
