"""Main module entrypoint for local runtime execution.

This module validates startup configuration and either launches the FastAPI
service or compiles one job config offline.
"""

import argparse
import json
from pathlib import Path

import uvicorn
import yaml

from framework_jobs.bootstrap import bootstrap_create_application
from framework_jobs.config import config_configure_logging, config_load_settings
from framework_jobs.jobs import FrameworkSpecCompiler


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
    """

    argument_parser = argparse.ArgumentParser(description="Framework job service runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "compile"),
        help="Runtime command: `api` starts server, `compile` prints the framework description of a job config",
        type=str,
    )
    argument_parser.add_argument(
        "config_path",
        nargs="?",
        type=str,
        help="Job config YAML path for `compile`",
    )
    argument_parser.add_argument(
        "--framework-name",
        dest="framework_name",
        type=str,
        help="Job identifier in `user~job` form for `compile`",
    )
    argument_parser.add_argument(
        "--virtual-cluster",
        dest="virtual_cluster",
        type=str,
        default=None,
        help="Virtual cluster override for `compile`, defaults to the config value or `default`",
    )
    parsed_arguments = argument_parser.parse_args()

    if parsed_arguments.command == "compile":
        if not parsed_arguments.config_path or not parsed_arguments.framework_name:
            argument_parser.error("`compile` requires a config path and --framework-name")
        main_compile(
            config_path=Path(parsed_arguments.config_path),
            framework_name=parsed_arguments.framework_name,
            virtual_cluster=parsed_arguments.virtual_cluster,
        )
        return

    settings = config_load_settings()
    application = bootstrap_create_application()
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
    )


def main_compile(config_path: Path, framework_name: str, virtual_cluster: str | None = None) -> None:
    """Compile one job config and print the framework description as JSON.

    Args:
        config_path: Job config YAML path.
        framework_name: Job identifier in `user~job` form.
        virtual_cluster: Optional virtual cluster override.

    Returns:
        None: Prints the description to stdout as side effect.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        ValueError: Raised when the config cannot be compiled.
    """

    settings = config_load_settings()
    config_configure_logging(settings.log_level)
    raw_config = config_path.read_text(encoding="utf-8")
    config = yaml.safe_load(raw_config)
    if not isinstance(config, dict):
        raise ValueError(f"job config must be a YAML mapping: {config_path}")

    defaults = config.get("defaults") or {}
    resolved_virtual_cluster = virtual_cluster or defaults.get("virtualCluster") or "default"
    compiler = FrameworkSpecCompiler(settings=settings)
    framework_description = compiler.compiler_build_framework(
        framework_name=framework_name,
        virtual_cluster=resolved_virtual_cluster,
        config=config,
        raw_config=raw_config,
    )
    print(json.dumps(framework_description, indent=2))


if __name__ == "__main__":
    main()
