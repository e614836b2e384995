"""
Module containing the wire-level pieces of localhttp: the request encoder,
the response parser and the status classifier.

Use this module (instead of the modules under it) to import them.
"""

from localhttp.http.parser import ParsedResponse, StatusLine, parse_response
from localhttp.http.request import Request, encode_request
from localhttp.http.status import ReplyError, classify_status

__all__ = [
    "ParsedResponse",
    "ReplyError",
    "Request",
    "StatusLine",
    "classify_status",
    "encode_request",
    "parse_response",
]
