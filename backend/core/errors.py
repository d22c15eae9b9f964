"""
Error taxonomy for the sheets backend.

Every error the API layer turns into a JSON response derives from
SheetsBackendError, which carries the HTTP status and a short label.
Upstream Google / network exceptions are mapped onto the taxonomy by
classify_upstream_error().
"""
from typing import Any, Dict, List, Optional

import gspread.exceptions
import requests
from google.auth import exceptions as google_auth_exceptions
from googleapiclient.errors import HttpError


class SheetsBackendError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str, details: Optional[Any] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": False,
            "error": self.error,
            "message": self.message,
        }
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(SheetsBackendError):
    """Malformed input: missing structure, bad custom fields, schema violations."""

    status_code = 400
    error = "Validation error"

    def __init__(self, message: str, details: Optional[List[Dict[str, str]]] = None):
        super().__init__(message, details=details)


class AuthError(SheetsBackendError):
    """Credential or permission failure upstream (401, or 403 for permissions)."""

    status_code = 401
    error = "Authentication error"


class NotFoundError(SheetsBackendError):
    status_code = 404
    error = "Sheet not found"


class RateLimitError(SheetsBackendError):
    status_code = 429
    error = "Rate limit exceeded"


class NetworkError(SheetsBackendError):
    status_code = 503
    error = "Service unavailable"


class UnknownError(SheetsBackendError):
    status_code = 500
    error = "Internal server error"


def upstream_status(exc: Exception) -> Optional[int]:
    """Extract the HTTP status code from a gspread or googleapiclient error."""
    if isinstance(exc, gspread.exceptions.APIError):
        code = getattr(exc, "code", None)
        if isinstance(code, int):
            return code
        response = getattr(exc, "response", None)
        return getattr(response, "status_code", None)
    if isinstance(exc, HttpError):
        status = getattr(exc, "status_code", None)
        if status is None and getattr(exc, "resp", None) is not None:
            status = exc.resp.status
        try:
            return int(status) if status is not None else None
        except (TypeError, ValueError):
            return None
    return None


def is_rate_limit_error(exc: Exception) -> bool:
    if upstream_status(exc) == 429:
        return True
    text = str(exc)
    return "RESOURCE_EXHAUSTED" in text or "ratelimitexceeded" in text.lower() or "quota" in text.lower()


def classify_upstream_error(exc: Exception, action: str = "Google API request") -> SheetsBackendError:
    """
    Map an exception raised while talking to Google onto the error taxonomy.

    Args:
        exc: The exception raised by gspread, googleapiclient, google-auth or requests
        action: Short description used as the message prefix
    """
    if isinstance(exc, SheetsBackendError):
        return exc

    if isinstance(exc, google_auth_exceptions.RefreshError):
        return AuthError(
            f"{action} failed: Authentication failed. Please check your Google service account credentials.",
            details="Please check your Google service account credentials and permissions.",
        )

    if isinstance(exc, (google_auth_exceptions.TransportError, requests.exceptions.ConnectionError,
                        requests.exceptions.Timeout, ConnectionError, TimeoutError)):
        return NetworkError(
            f"{action} failed: Network error. Please check your internet connection and try again.",
            details="Network error. Please check your internet connection and try again.",
        )

    status = upstream_status(exc)
    if status == 429 or (status is not None and is_rate_limit_error(exc)):
        return RateLimitError(
            f"{action} failed: Google API rate limit exceeded. Please try again later.",
            details="Google API rate limit exceeded. Please try again later.",
        )
    if status == 401:
        return AuthError(
            f"{action} failed: Authentication failed. Please check your Google service account credentials.",
            details="Please check your Google service account credentials and permissions.",
        )
    if status == 403:
        error = AuthError(
            f"{action} failed: Insufficient permissions. Please check your service account credentials and permissions.",
            details="Please check your Google service account credentials and permissions.",
            status_code=403,
        )
        error.error = "Permission denied"
        return error
    if status == 404:
        return NotFoundError(f"{action} failed: The specified Google Sheet could not be found")
    if status == 400:
        return ValidationError(f"{action} failed: Invalid request to Google Sheets API. {exc}")

    return UnknownError(f"{action} failed: {exc or 'Unknown error occurred'}")
