"""
localhttp exceptions

None of these cross the reply boundary: failures while reading a reply are
reported through :class:`~localhttp.core.reply.Reply` states.
"""

from __future__ import annotations

from typing import Any

# Internal


class NotConfigured(Exception):
    """Indicates a missing configuration situation"""


# HTTP


class MalformedStatusLine(ValueError):
    """The first line of a response is not an HTTP/1.x status line"""

    def __init__(self, line: bytes):
        super().__init__(f"Malformed HTTP status line: {line!r}")
        self.line = line


# Commands


class UsageError(Exception):
    """To indicate a command-line usage error"""

    def __init__(self, *a: Any, **kw: Any):
        self.print_help = kw.pop("print_help", True)
        super().__init__(*a, **kw)
