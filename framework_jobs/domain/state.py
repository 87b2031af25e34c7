"""Translation of framework controller states into user-facing job states."""

from __future__ import annotations

from enum import Enum
from typing import Final


class JobState(str, Enum):
    """User-facing job state vocabulary."""

    WAITING = "WAITING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    STOPPED = "STOPPED"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN"


class FrameworkState(str, Enum):
    """Framework and task states reported by the framework controller."""

    ATTEMPT_CREATION_PENDING = "AttemptCreationPending"
    ATTEMPT_CREATION_REQUESTED = "AttemptCreationRequested"
    ATTEMPT_PREPARING = "AttemptPreparing"
    ATTEMPT_RUNNING = "AttemptRunning"
    ATTEMPT_DELETION_PENDING = "AttemptDeletionPending"
    ATTEMPT_DELETION_REQUESTED = "AttemptDeletionRequested"
    ATTEMPT_DELETING = "AttemptDeleting"
    ATTEMPT_COMPLETED = "AttemptCompleted"
    COMPLETED = "Completed"


DOMAIN_STATE_USER_STOP_EXIT_CODES: Final[frozenset[int]] = frozenset({-210, -220})

_DOMAIN_STATE_WAITING_STATES: Final[frozenset[str]] = frozenset(
    {
        FrameworkState.ATTEMPT_CREATION_PENDING.value,
        FrameworkState.ATTEMPT_CREATION_REQUESTED.value,
        FrameworkState.ATTEMPT_PREPARING.value,
    }
)

_DOMAIN_STATE_RUNNING_STATES: Final[frozenset[str]] = frozenset(
    {
        FrameworkState.ATTEMPT_RUNNING.value,
        FrameworkState.ATTEMPT_DELETION_PENDING.value,
        FrameworkState.ATTEMPT_DELETION_REQUESTED.value,
        FrameworkState.ATTEMPT_DELETING.value,
    }
)


def domain_state_translate(
    controller_state: object,
    exit_code: object,
    retry_delay_seconds: object,
) -> JobState:
    """Map a controller state to the user-facing job state.

    The function is total: any unrecognized controller state, including
    None or non-string values, yields `JobState.UNKNOWN`.

    Args:
        controller_state: Framework or task state reported by the controller.
        exit_code: Completion exit code, None when not completed.
        retry_delay_seconds: Pending retry delay, None when no retry is scheduled.

    Returns:
        JobState: Translated job state.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if not isinstance(controller_state, str):
        return JobState.UNKNOWN
    if controller_state in _DOMAIN_STATE_WAITING_STATES:
        return JobState.WAITING
    if controller_state in _DOMAIN_STATE_RUNNING_STATES:
        return JobState.RUNNING
    if controller_state == FrameworkState.ATTEMPT_COMPLETED.value:
        if retry_delay_seconds is None:
            return JobState.RUNNING
        return JobState.WAITING
    if controller_state == FrameworkState.COMPLETED.value:
        if _domain_state_is_exit_code(exit_code, 0):
            return JobState.SUCCEEDED
        if any(_domain_state_is_exit_code(exit_code, code) for code in DOMAIN_STATE_USER_STOP_EXIT_CODES):
            return JobState.STOPPED
        return JobState.FAILED
    return JobState.UNKNOWN


def _domain_state_is_exit_code(exit_code: object, expected: int) -> bool:
    """Compare an exit code numerically, rejecting booleans and non-numbers.

    Args:
        exit_code: Candidate exit code.
        expected: Expected integer code.

    Returns:
        bool: True when exit code equals the expected code.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return isinstance(exit_code, (int, float)) and not isinstance(exit_code, bool) and exit_code == expected
