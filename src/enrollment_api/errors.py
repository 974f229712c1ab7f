"""HTTP error taxonomy — classify back-end responses into named exceptions.

Classification (first match wins):

  - 401 → :class:`UnauthorizedError`
  - 204 → no content, the caller receives ``None``
  - 400 → :class:`BadRequestError` with the problem ``title``
  - 403 → :class:`ForbiddenError` with the body ``message``
  - 404 → :class:`NotFoundError` with the problem ``title``
  - any other non-2xx → :class:`ApiError`

The workflow runtime never inspects these types; a step only shows the
message of a failed submission.
"""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-success response from the enrollment back end."""

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class UnauthorizedError(ApiError):
    pass


class BadRequestError(ApiError):
    pass


class ForbiddenError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


def _body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def _field(payload: Any, name: str, default: str) -> str:
    if isinstance(payload, dict) and payload.get(name):
        return str(payload[name])
    return default


def decode_response(response: httpx.Response) -> Any:
    """Return the decoded body of a successful response or raise the mapped error."""
    status = response.status_code
    if status == 401:
        raise UnauthorizedError("Unauthorized", status)
    if status == 204:
        return None
    if response.is_success:
        return _body(response) if response.content else None

    payload = _body(response)
    logger.warning("%s %s -> %d", response.request.method, response.request.url, status)
    if status == 400:
        raise BadRequestError(_field(payload, "title", "Bad request"), status, payload)
    if status == 403:
        raise ForbiddenError(_field(payload, "message", "Forbidden"), status, payload)
    if status == 404:
        raise NotFoundError(_field(payload, "title", "Not found"), status, payload)
    raise ApiError(f"Request failed with status {status}", status, payload)
