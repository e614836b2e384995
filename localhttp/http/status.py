"""
Reply error categories and the mapping from HTTP status codes to them.
"""

from __future__ import annotations

from enum import Enum


class ReplyError(Enum):
    # First line of the response is not an HTTP status line
    MALFORMED_STATUS_LINE = "MalformedStatusLine"

    # Transport went away before the response was fully framed
    INCOMPLETE_RESPONSE = "IncompleteResponse"

    # Reply aborted by the caller
    CANCELED = "Canceled"

    # Deadline elapsed before the response was complete
    TIMEOUT = "Timeout"

    # Categories for well-framed responses with an HTTP error status
    INVALID_OPERATION = "InvalidOperation"
    AUTHENTICATION_REQUIRED = "AuthenticationRequired"
    ACCESS_DENIED = "AccessDenied"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    INTERNAL_SERVER_ERROR = "InternalServerError"
    UNKNOWN_SERVER_ERROR = "UnknownServerError"
    UNKNOWN_CONTENT_ERROR = "UnknownContentError"

    def __str__(self) -> str:
        return self.value


_STATUS_ERRORS: dict[int, ReplyError] = {
    400: ReplyError.INVALID_OPERATION,
    401: ReplyError.AUTHENTICATION_REQUIRED,
    403: ReplyError.ACCESS_DENIED,
    404: ReplyError.NOT_FOUND,
    409: ReplyError.CONFLICT,
    500: ReplyError.INTERNAL_SERVER_ERROR,
}


def classify_status(status: int) -> ReplyError | None:
    """Return the error category for an HTTP status code, or ``None`` for
    codes below 400.

    >>> classify_status(404)
    <ReplyError.NOT_FOUND: 'NotFound'>
    >>> classify_status(503)
    <ReplyError.UNKNOWN_SERVER_ERROR: 'UnknownServerError'>
    >>> classify_status(204) is None
    True
    """
    if status < 400:
        return None
    try:
        return _STATUS_ERRORS[status]
    except KeyError:
        if status > 500:
            return ReplyError.UNKNOWN_SERVER_ERROR
        return ReplyError.UNKNOWN_CONTENT_ERROR
