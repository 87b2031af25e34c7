"""Domain translation logic shared across application layer boundaries."""

from .diagnostics import DiagnosticsRecord, domain_diagnostics_extract
from .exit_spec import (
	NEGATIVE_FALLBACK_EXIT_CODE,
	POSITIVE_FALLBACK_EXIT_CODE,
	ExitSpecLoadError,
	ExitSpecTable,
	exit_spec_resolve_path,
	exit_spec_table_load,
)
from .models import (
	JobDetail,
	JobStatusDetail,
	JobSummary,
	RetryDetails,
	TaskDetail,
	TaskPlacement,
	TaskRoleDetail,
)
from .name_codec import (
	ForeignName,
	OwnEncodedName,
	domain_name_base32_decode,
	domain_name_classify,
	domain_name_convert,
	domain_name_decode,
	domain_name_encode,
	domain_name_split_framework_name,
)
from .state import DOMAIN_STATE_USER_STOP_EXIT_CODES, FrameworkState, JobState, domain_state_translate

__all__ = [
	"DOMAIN_STATE_USER_STOP_EXIT_CODES",
	"DiagnosticsRecord",
	"ExitSpecLoadError",
	"ExitSpecTable",
	"ForeignName",
	"FrameworkState",
	"JobDetail",
	"JobState",
	"JobStatusDetail",
	"JobSummary",
	"NEGATIVE_FALLBACK_EXIT_CODE",
	"OwnEncodedName",
	"POSITIVE_FALLBACK_EXIT_CODE",
	"RetryDetails",
	"TaskDetail",
	"TaskPlacement",
	"TaskRoleDetail",
	"domain_diagnostics_extract",
	"domain_name_base32_decode",
	"domain_name_classify",
	"domain_name_convert",
	"domain_name_decode",
	"domain_name_encode",
	"domain_name_split_framework_name",
	"domain_state_translate",
	"exit_spec_resolve_path",
	"exit_spec_table_load",
]
