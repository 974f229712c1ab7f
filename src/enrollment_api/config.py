"""API client configuration — reads settings from environment variables.

Defaults point at a local back end for development.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ApiSettings:
    """Immutable client configuration read from environment at startup."""

    # Base URL of the enrollment back end (no trailing slash)
    base_url: str = "http://localhost:5000"

    # Per-request timeout in seconds
    timeout_seconds: float = 30.0


def load_api_settings() -> ApiSettings:
    """Build settings from ``ENROLLMENT_API_*`` environment variables."""
    return ApiSettings(
        base_url=os.getenv("ENROLLMENT_API_URL", "http://localhost:5000").rstrip("/"),
        timeout_seconds=float(os.getenv("ENROLLMENT_API_TIMEOUT_SECONDS", "30")),
    )
