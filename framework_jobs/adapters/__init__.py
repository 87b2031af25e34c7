"""Adapter layer package for framework controller integration boundaries."""

from .errors import (
	ForbiddenUserError,
	FrameworkTransportError,
	JobServiceError,
	NoJobConfigError,
	NoJobError,
	NoJobSshInfoError,
	UnknownError,
)
from .framework_controller import FrameworkControllerAdapter
from .interfaces import AdapterResponse, FrameworkControllerPort, PodLookupPort, VirtualClusterAuthorizerPort
from .virtual_cluster import StaticVirtualClusterAuthorizer

__all__ = [
	"AdapterResponse",
	"ForbiddenUserError",
	"FrameworkControllerAdapter",
	"FrameworkControllerPort",
	"FrameworkTransportError",
	"JobServiceError",
	"NoJobConfigError",
	"NoJobError",
	"NoJobSshInfoError",
	"PodLookupPort",
	"StaticVirtualClusterAuthorizer",
	"UnknownError",
	"VirtualClusterAuthorizerPort",
]
