"""Workflow constants shared across the SDK.

These values are referenced by the actors, the responses builder, and the
session facade.  They mirror conventions of the enrollment back end (wire
enums for response data types and sources, status message texts).

Several constants can be overridden via environment variables so that
deployments can tune timeouts without code changes.
"""

import os
from enum import IntEnum

# Seconds a ValueCollector waits for all replies before resolving as
# timed out.  Overridable via WORKFLOW_ASK_TIMEOUT_SECONDS.
DEFAULT_ASK_TIMEOUT_SECONDS = float(os.getenv("WORKFLOW_ASK_TIMEOUT_SECONDS", "5.0"))

# Seconds before a success/error status message clears itself.
# Overridable via WORKFLOW_STATUS_RESET_SECONDS.
DEFAULT_STATUS_RESET_SECONDS = float(os.getenv("WORKFLOW_STATUS_RESET_SECONDS", "3.0"))

# Boolean answers travel as strings between actors.
YES = "yes"
NO = "no"

# Status texts published on the orchestrator's status channel.
LOADING_ENROLLMENT_MESSAGE = "Loading Enrollment"
ENROLLMENT_LOADED_MESSAGE = "Enrollment successfully loaded"
RESPONSES_SAVED_MESSAGE = "Responses saved successfully"
APPLICATION_SUBMITTED_MESSAGE = "Application submitted successfully"

# Cache keys used by the session facade for memoized fetches.
APPLICATION_CACHE_KEY = "application"
WORKFLOW_CACHE_KEY = "workflow"
SUBMIT_CACHE_KEY = "submitData"


class ResponseDataType(IntEnum):
    """``dataType`` codes of a submitted question response."""

    BOOLEAN = 1
    DATE = 2
    STRING = 3


class ResponseSource(IntEnum):
    """``responseSource`` codes: who produced a submitted value."""

    AGENT = 1
    API = 2
    TENEO = 3
