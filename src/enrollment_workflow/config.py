"""Workflow runtime configuration — reads settings from environment variables.

All settings have sensible defaults for local development and tests.  The
session facade calls :func:`load_settings` when no explicit settings object
is given.
"""

import os
from dataclasses import dataclass

from enrollment_workflow.constants import (
    DEFAULT_ASK_TIMEOUT_SECONDS,
    DEFAULT_STATUS_RESET_SECONDS,
)

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


@dataclass(frozen=True)
class WorkflowSettings:
    """Immutable runtime configuration for one workflow session."""

    # Barrier timeout for value collection (group rules, form sync)
    ask_timeout_seconds: float = DEFAULT_ASK_TIMEOUT_SECONDS

    # Evaluate every group rule of a question instead of only the first one
    evaluate_all_groups: bool = False

    # Keep a data-source option selected when it is the only one returned
    auto_select_single_option: bool = False

    # Delay before success/error status messages reset; 0 disables the reset
    status_reset_seconds: float = DEFAULT_STATUS_RESET_SECONDS

    # Logging
    log_level: str = "INFO"


def load_settings() -> WorkflowSettings:
    """Build settings from ``WORKFLOW_*`` environment variables."""
    return WorkflowSettings(
        ask_timeout_seconds=float(
            os.getenv("WORKFLOW_ASK_TIMEOUT_SECONDS", str(DEFAULT_ASK_TIMEOUT_SECONDS))
        ),
        evaluate_all_groups=_env_flag("WORKFLOW_EVALUATE_ALL_GROUPS"),
        auto_select_single_option=_env_flag("WORKFLOW_AUTO_SELECT_SINGLE_OPTION"),
        status_reset_seconds=float(
            os.getenv("WORKFLOW_STATUS_RESET_SECONDS", str(DEFAULT_STATUS_RESET_SECONDS))
        ),
        log_level=os.getenv("WORKFLOW_LOG_LEVEL", "INFO").upper(),
    )
