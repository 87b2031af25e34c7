"""Extraction of structured exit messages from framework diagnostics text.

The framework controller appends a `matched: {...}` JSON tail describing the
completed pod when a completion rule fires. Containers of the job runtime
report their own error as a YAML block between two anchor tokens inside the
container message. Every step below returns None when its input is absent or
malformed so callers degrade instead of failing.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Final

import yaml

logger = logging.getLogger(__name__)

_DOMAIN_DIAGNOSTICS_MARKER_PATTERN = re.compile(r"matched: (.*)")
_DOMAIN_DIAGNOSTICS_MARKER: Final[str] = "matched:"
DOMAIN_DIAGNOSTICS_RUNTIME_ERROR_START: Final[str] = "[PAI_RUNTIME_ERROR_START]"
DOMAIN_DIAGNOSTICS_RUNTIME_ERROR_END: Final[str] = "[PAI_RUNTIME_ERROR_END]"


@dataclass(frozen=True)
class DiagnosticsRecord:
    """Structured view of framework completion diagnostics.

    Attributes:
        diagnostics_summary: Diagnostics text with the matched payload rendered as YAML.
        runtime: Runtime error payload with the originating container name, if any.
        launcher: Launcher-level diagnostics text, None when a runtime payload exists.
    """

    diagnostics_summary: str
    runtime: dict[str, Any] | None
    launcher: str | None


@dataclass(frozen=True)
class _MarkerMatch:
    prefix: str
    payload_text: str


def domain_diagnostics_extract(diagnostics: str | None) -> DiagnosticsRecord | None:
    """Build the structured diagnostics record from raw diagnostics text.

    Args:
        diagnostics: Raw diagnostics text reported by the framework controller.

    Returns:
        DiagnosticsRecord | None: Structured record, None for empty input.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if not diagnostics or not isinstance(diagnostics, str):
        return None

    raw_record = DiagnosticsRecord(diagnostics_summary=diagnostics, runtime=None, launcher=diagnostics)

    marker_match = domain_diagnostics_locate_marker(diagnostics)
    if marker_match is None:
        return raw_record

    completion_payload = domain_diagnostics_parse_payload(marker_match.payload_text)
    if completion_payload is None:
        return raw_record

    summary = domain_diagnostics_render_summary(marker_match.prefix, completion_payload)
    runtime = domain_diagnostics_extract_runtime(completion_payload)
    if runtime is not None:
        return DiagnosticsRecord(diagnostics_summary=summary, runtime=runtime, launcher=None)
    return DiagnosticsRecord(diagnostics_summary=summary, runtime=None, launcher=summary)


def domain_diagnostics_locate_marker(diagnostics: str) -> _MarkerMatch | None:
    """Locate the `matched: ` marker and split the text around it.

    Args:
        diagnostics: Raw diagnostics text.

    Returns:
        _MarkerMatch | None: Prefix up to the marker and the trailing payload text.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    match = _DOMAIN_DIAGNOSTICS_MARKER_PATTERN.search(diagnostics)
    if match is None:
        return None
    prefix = diagnostics[: match.start() + len(_DOMAIN_DIAGNOSTICS_MARKER)]
    return _MarkerMatch(prefix=prefix, payload_text=match.group(1))


def domain_diagnostics_parse_payload(payload_text: str) -> dict[str, Any] | None:
    """Parse the matched pod completion payload.

    Args:
        payload_text: JSON text following the marker.

    Returns:
        dict[str, Any] | None: Parsed payload, None when malformed.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    try:
        payload = json.loads(payload_text)
    except ValueError as error:
        logger.warning("Get diagnostics info failed: %s", error)
        return None
    if not isinstance(payload, dict):
        logger.warning("Get diagnostics info failed: matched payload is not an object")
        return None
    return payload


def domain_diagnostics_render_summary(prefix: str, completion_payload: dict[str, Any]) -> str:
    """Render diagnostics prefix followed by the payload as block YAML.

    Args:
        prefix: Diagnostics text up to and including the marker.
        completion_payload: Parsed pod completion payload.

    Returns:
        str: Rendered diagnostics summary.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return f"{prefix}\n{yaml.safe_dump(completion_payload, default_flow_style=False, sort_keys=False)}"


def domain_diagnostics_extract_runtime(completion_payload: dict[str, Any]) -> dict[str, Any] | None:
    """Return the first parsable runtime error block of a failed container.

    Args:
        completion_payload: Parsed pod completion payload.

    Returns:
        dict[str, Any] | None: Runtime payload with the container `name`, None when absent.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    containers = completion_payload.get("containers")
    if not isinstance(containers, list):
        return None

    for container in containers:
        if not isinstance(container, dict):
            continue
        code = container.get("code")
        if not isinstance(code, (int, float)) or isinstance(code, bool) or code <= 0:
            continue
        block_text = domain_diagnostics_locate_anchor_block(container.get("message"))
        if block_text is None:
            continue
        runtime_payload = domain_diagnostics_parse_block(block_text)
        if runtime_payload is None:
            continue
        return {**runtime_payload, "name": container.get("name")}
    return None


def domain_diagnostics_locate_anchor_block(message: object) -> str | None:
    """Return the trimmed text between the runtime error anchors.

    Args:
        message: Container termination message.

    Returns:
        str | None: Enclosed text, None when either anchor is missing.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if not isinstance(message, str):
        return None
    start_index = message.find(DOMAIN_DIAGNOSTICS_RUNTIME_ERROR_START)
    end_index = message.find(DOMAIN_DIAGNOSTICS_RUNTIME_ERROR_END)
    if start_index < 0 or end_index < 0:
        return None
    return message[start_index + len(DOMAIN_DIAGNOSTICS_RUNTIME_ERROR_START) : end_index].strip()


def domain_diagnostics_parse_block(block_text: str) -> dict[str, Any] | None:
    """Parse a runtime error block as a YAML mapping.

    Args:
        block_text: Text enclosed by the runtime error anchors.

    Returns:
        dict[str, Any] | None: Parsed mapping, None when malformed.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    try:
        parsed_block = yaml.safe_load(block_text)
    except yaml.YAMLError as error:
        logger.warning("failed to format runtime output: %s %s", block_text, error)
        return None
    if not isinstance(parsed_block, dict):
        logger.warning("failed to format runtime output: %s is not a mapping", block_text)
        return None
    return parsed_block
