"""
Google Calendar service construction and error reporting.

Credentials are resolved in this order:
- GOOGLE_CALENDAR_CREDENTIALS_JSON: service account key as a JSON string
- GOOGLE_CALENDAR_CREDENTIALS_FILE: path to a service account key file
- GOOGLE_CALENDAR_TOKEN_FILE: an already-authorized user token

Service accounts act as GOOGLE_CALENDAR_EMAIL when it is set (domain-wide
delegation). Obtaining a user token interactively is not handled here.
"""

import json
import logging
import os

import sentry_sdk
from google.oauth2 import credentials as user_credentials
from google.oauth2 import service_account
from googleapiclient.discovery import Resource, build
from googleapiclient.errors import HttpError

from core.errors import CalendarError

logger = logging.getLogger(__name__)

CALENDAR_EMAIL = os.environ.get("GOOGLE_CALENDAR_EMAIL")
CREDENTIALS_JSON = os.environ.get("GOOGLE_CALENDAR_CREDENTIALS_JSON")
CREDENTIALS_FILE = os.environ.get("GOOGLE_CALENDAR_CREDENTIALS_FILE")
TOKEN_FILE = os.environ.get("GOOGLE_CALENDAR_TOKEN_FILE")
SCOPES = ["https://www.googleapis.com/auth/calendar"]

_service: Resource | None = None


def log_calendar_error(
    exception: Exception,
    operation: str,
    context: dict | None = None,
) -> None:
    """
    Record a failed Calendar API call.

    HTTP 429 is expected under load and is reported as a warning message;
    anything else is an error with the exception attached.
    """
    extra = {"operation": operation, **(context or {})}

    if isinstance(exception, HttpError) and exception.resp.status == 429:
        logger.warning(f"Calendar API rate limited ({operation})", extra=extra)
        sentry_sdk.capture_message(
            f"Calendar API rate limited: {operation}", level="warning", extras=extra
        )
        return

    logger.error(f"Calendar API call {operation} failed: {exception}", extra=extra)
    sentry_sdk.capture_exception(exception)


def _file_exists(path: str | None) -> bool:
    return bool(path) and os.path.exists(path)


def is_calendar_configured() -> bool:
    """True if any credential source is available."""
    return bool(CREDENTIALS_JSON) or _file_exists(CREDENTIALS_FILE) or _file_exists(TOKEN_FILE)


def _service_account_credentials():
    if CREDENTIALS_JSON:
        creds = service_account.Credentials.from_service_account_info(
            json.loads(CREDENTIALS_JSON), scopes=SCOPES
        )
    else:
        creds = service_account.Credentials.from_service_account_file(
            CREDENTIALS_FILE, scopes=SCOPES
        )
    return creds.with_subject(CALENDAR_EMAIL) if CALENDAR_EMAIL else creds


def _load_credentials():
    if CREDENTIALS_JSON or _file_exists(CREDENTIALS_FILE):
        return _service_account_credentials()
    return user_credentials.Credentials.from_authorized_user_file(TOKEN_FILE, scopes=SCOPES)


def get_calendar_service() -> Resource:
    """
    The shared Calendar v3 service, built on first use.

    Raises:
        CalendarError: If no credentials are configured or they fail to load
    """
    global _service

    if _service is None:
        if not is_calendar_configured():
            raise CalendarError("Google Calendar credentials are not configured")
        try:
            _service = build("calendar", "v3", credentials=_load_credentials())
        except Exception as e:
            raise CalendarError(f"Could not build Google Calendar service: {e}") from e
        logger.info("Google Calendar service ready")

    return _service


def reset_calendar_service() -> None:
    """Forget the cached service (tests and credential rotation)."""
    global _service
    _service = None
