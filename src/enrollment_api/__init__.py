"""enrollment_api — httpx implementation of the workflow collaborators.

Public API:
    EnrollmentApiClient — WorkflowGateway + DataSourceFetcher over HTTP
    ApiSettings         — base URL and timeout, read from the environment
    ApiError            — base of the HTTP error taxonomy
"""

from enrollment_api.client import EnrollmentApiClient
from enrollment_api.config import ApiSettings, load_api_settings
from enrollment_api.errors import (
    ApiError,
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)

__all__ = [
    "EnrollmentApiClient",
    "ApiSettings",
    "load_api_settings",
    "ApiError",
    "BadRequestError",
    "ForbiddenError",
    "NotFoundError",
    "UnauthorizedError",
]
