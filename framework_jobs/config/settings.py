"""Typed runtime settings with dotenv support and startup validation."""

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SettingsLoadError(RuntimeError):
    """Raised when runtime settings cannot be loaded or validated."""


class AppSettings(BaseSettings):
    """Application settings for API runtime and framework controller access.

    Environment variable names map directly to field names in uppercase.
    Example: `launcher_api_server_uri` reads from `LAUNCHER_API_SERVER_URI`.

    Attributes:
        environment_name: Runtime environment label.
        application_host: Host interface for web server binding.
        application_port: Web server port.
        log_level: Root logging level applied at startup.
        launcher_api_server_uri: Kubernetes API server base URI.
        launcher_api_version: Framework resource API group and version.
        launcher_namespace: Namespace holding framework and pod resources.
        launcher_runtime_image: Image of the init container that installs the job runtime.
        launcher_runtime_image_pull_secrets: Image pull secret name attached to every pod.
        launcher_pod_graceful_deletion_timeout_seconds: Pod graceful deletion timeout.
        launcher_scheduler_name: Scheduler name used when GPU isolation scheduling is enabled.
        launcher_hived_enabled: Whether pods are routed through the GPU isolation scheduler.
        launcher_request_timeout_seconds: HTTP timeout for framework controller requests.
        exit_spec_path: Optional override for the exit-spec YAML path.
        log_manager_port: Port of the per-node log manager used to build container log URLs.
        user_virtual_clusters: Allowed virtual clusters per user, `default` is always allowed.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment_name: str = Field(default="development")
    application_host: str = Field(default="0.0.0.0")
    application_port: int = Field(default=9186, ge=1, le=65535)
    log_level: str = Field(default="INFO")
    launcher_api_server_uri: str = Field(default="http://localhost:8080", min_length=1)
    launcher_api_version: str = Field(default="frameworkcontroller.microsoft.com/v1", min_length=1)
    launcher_namespace: str = Field(default="default", min_length=1)
    launcher_runtime_image: str = Field(default="openpai/kube-runtime:latest", min_length=1)
    launcher_runtime_image_pull_secrets: str = Field(default="pai-secret", min_length=1)
    launcher_pod_graceful_deletion_timeout_seconds: int = Field(default=600, ge=0)
    launcher_scheduler_name: str = Field(default="hivedscheduler", min_length=1)
    launcher_hived_enabled: bool = Field(default=False)
    launcher_request_timeout_seconds: float = Field(default=30.0, gt=0)
    exit_spec_path: str | None = Field(default=None)
    log_manager_port: int = Field(default=9103, ge=1, le=65535)
    user_virtual_clusters: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator(
        "launcher_api_server_uri",
        "launcher_api_version",
        "launcher_namespace",
        "launcher_runtime_image",
        "launcher_runtime_image_pull_secrets",
        "launcher_scheduler_name",
    )
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("launcher_api_server_uri")
    @classmethod
    def _validate_api_server_uri(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("launcher_api_server_uri must start with http:// or https://")
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized_value = value.strip().upper()
        if normalized_value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("log_level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return normalized_value

    @field_validator("exit_spec_path")
    @classmethod
    def _validate_exit_spec_path(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped_value = value.strip()
        return stripped_value or None

    def settings_frameworks_path(self) -> str:
        """Return the collection URL of framework resources.

        Returns:
            str: Absolute URL of the framework collection.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        return f"{self.launcher_api_server_uri}/apis/{self.launcher_api_version}/namespaces/{self.launcher_namespace}/frameworks"

    def settings_framework_path(self, framework_name: str) -> str:
        """Return the URL of one framework resource.

        Args:
            framework_name: Encoded framework resource name.

        Returns:
            str: Absolute URL of the framework resource.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        return f"{self.settings_frameworks_path()}/{framework_name}"

    def settings_pod_path(self, pod_name: str) -> str:
        """Return the URL of one pod resource.

        Args:
            pod_name: Pod resource name.

        Returns:
            str: Absolute URL of the pod resource.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        return f"{self.launcher_api_server_uri}/api/v1/namespaces/{self.launcher_namespace}/pods/{pod_name}"


def config_load_settings() -> AppSettings:
    """Load and validate runtime settings from environment and dotenv.

    Returns:
        AppSettings: Validated runtime settings object.

    Raises:
        SettingsLoadError: Raised when required settings are missing or invalid.
    """

    try:
        return AppSettings()
    except ValidationError as error:
        raise SettingsLoadError(
            f"Startup configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error
