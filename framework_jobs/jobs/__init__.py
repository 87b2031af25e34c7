"""Job layer package for compilation, conversion and request-boundary operations."""

from .converters import (
	job_convert_container_gpus,
	job_convert_container_ports,
	job_convert_framework_detail,
	job_convert_framework_summary,
	job_convert_retry_details,
	job_convert_timestamp_ms,
)
from .interfaces import JobServicePort
from .job_service import FrameworkJobService
from .runtime_env import job_runtime_env_generate
from .spec_compiler import (
	COMPILER_PORT_RANGE_END,
	COMPILER_PORT_RANGE_START,
	HIVED_POD_GPU_ISOLATION_ANNOTATION,
	HIVED_POD_SCHEDULING_ENABLE_RESOURCE,
	HIVED_POD_SCHEDULING_SPEC_ANNOTATION,
	PORT_SCHEDULING_SPEC_ANNOTATION,
	FrameworkSpecCompiler,
	PortAllocation,
)

__all__ = [
	"COMPILER_PORT_RANGE_END",
	"COMPILER_PORT_RANGE_START",
	"FrameworkJobService",
	"FrameworkSpecCompiler",
	"HIVED_POD_GPU_ISOLATION_ANNOTATION",
	"HIVED_POD_SCHEDULING_ENABLE_RESOURCE",
	"HIVED_POD_SCHEDULING_SPEC_ANNOTATION",
	"JobServicePort",
	"PORT_SCHEDULING_SPEC_ANNOTATION",
	"PortAllocation",
	"job_convert_container_gpus",
	"job_convert_container_ports",
	"job_convert_framework_detail",
	"job_convert_framework_summary",
	"job_convert_retry_details",
	"job_convert_timestamp_ms",
	"job_runtime_env_generate",
]
