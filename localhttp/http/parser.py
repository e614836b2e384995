"""
HTTP/1.1 response parser.

:func:`parse_response` is a pure function of the bytes received so far: it
never consumes or mutates its input, so the reader can call it again with a
longer buffer whenever more data arrives.
"""

from __future__ import annotations

import logging
import re
from typing import NamedTuple

from localhttp.exceptions import MalformedStatusLine
from localhttp.http.status import ReplyError, classify_status
from localhttp.utils.python import to_unicode

logger = logging.getLogger(__name__)


STATUS_LINE_RE = re.compile(rb"^HTTP/(\d\.\d) ([1-5]\d\d)(?: (.*))?$")
CHUNK_SIZE_RE = re.compile(rb"^[0-9a-fA-F]+$")


def _status_line_prefix_re() -> re.Pattern[bytes]:
    # HTTP/<d>.<d> <ddd>[ <reason>], every token optional from the right
    pattern = rb"\d(?: .*)?"
    tokens = (rb"\d", rb"[1-5]", b" ", rb"\d", rb"\.", rb"\d", b"/", b"P", b"T", b"T", b"H")
    for token in tokens:
        pattern = token + rb"(?:" + pattern + rb")?"
    return re.compile(rb"^" + pattern + rb"\r?$")


STATUS_LINE_PREFIX_RE = _status_line_prefix_re()


class StatusLine(NamedTuple):
    http_version: str
    status_code: int
    reason: str


class ParsedResponse:
    """Outcome of one parse attempt.

    ``complete`` is False while more bytes are needed; ``status`` and
    ``body`` then hold whatever could be assembled so far.
    """

    def __init__(
        self,
        status: StatusLine | None = None,
        body: bytes = b"",
        complete: bool = False,
        chunked: bool = False,
        content_length: int | None = None,
    ) -> None:
        self.status = status
        self.body = body
        self.complete = complete
        self.chunked = chunked
        self.content_length = content_length

    @property
    def delimited(self) -> bool:
        """Whether the headers tell where the body ends."""
        return self.chunked or self.content_length is not None

    @property
    def error(self) -> ReplyError | None:
        if self.status is None:
            return None
        return classify_status(self.status.status_code)

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} status={self.status!r} "
            f"complete={self.complete} body={len(self.body)} bytes>"
        )


def _read_line(data: bytes, pos: int) -> tuple[bytes | None, int]:
    """Return the line starting at ``pos`` without its terminator, and the
    position right after the terminator. A bare ``\\n`` ends a line too.

    ``(None, pos)`` means the line is not terminated yet.
    """
    end = data.find(b"\n", pos)
    if end == -1:
        return None, pos
    line = data[pos:end]
    if line.endswith(b"\r"):
        line = line[:-1]
    return line, end + 1


def parse_status_line(line: bytes) -> StatusLine:
    match = STATUS_LINE_RE.match(line)
    if match is None:
        raise MalformedStatusLine(line)
    version, status, reason = match.groups()
    return StatusLine(
        to_unicode(version, "ascii"),
        int(status),
        to_unicode(reason or b"", "latin-1"),
    )


def _header_value(line: bytes, name: bytes) -> bytes | None:
    key, sep, value = line.partition(b":")
    if sep and key.strip().lower() == name:
        return value.strip()
    return None


def _dechunk(data: bytes, pos: int) -> tuple[bytes, bool]:
    """Reassemble a chunked body starting at ``pos``.

    Returns the body assembled so far and whether the last (zero-sized) chunk
    was seen. Anything that stops the loop early, including a size line that
    does not parse, only means that more data is needed.
    """
    chunks: list[bytes] = []
    while True:
        line, start = _read_line(data, pos)
        if line is None:
            return b"".join(chunks), False
        # chunk extensions are ignored
        size_field = line.split(b";", 1)[0].strip()
        if not CHUNK_SIZE_RE.match(size_field):
            logger.debug("Unexpected chunk size line %r, waiting for more data", line)
            return b"".join(chunks), False
        size = int(size_field, 16)
        if size == 0:
            return b"".join(chunks), True
        end = start + size
        if len(data) < end:
            chunks.append(data[start:])
            return b"".join(chunks), False
        chunks.append(data[start:end])
        if data.startswith(b"\r\n", end):
            pos = end + 2
        elif data.startswith(b"\n", end):
            pos = end + 1
        else:
            return b"".join(chunks), False


def _trim_line_terminator(body: bytes) -> bytes:
    if body.endswith(b"\r\n"):
        return body[:-2]
    if body.endswith(b"\n"):
        return body[:-1]
    return body


def parse_response(data: bytes, eof: bool = False) -> ParsedResponse:
    """Parse the bytes of an HTTP/1.1 response received so far.

    ``eof`` tells that the transport is closed and no more bytes will come:
    a partial status line is then checked as it is, and an unterminated
    header block ends where the data ends.

    Raises :exc:`~localhttp.exceptions.MalformedStatusLine` when the first
    line is not an HTTP status line. Every other problem only makes the
    result incomplete.

    A body with neither a chunked encoding nor a ``Content-Length`` is
    complete as soon as it is parsed: the reader only parses once reads go
    idle, and the connection is not reused for another response.
    """
    if not data:
        return ParsedResponse()

    line, pos = _read_line(data, 0)
    if line is None:
        if not eof:
            if not STATUS_LINE_PREFIX_RE.match(data):
                raise MalformedStatusLine(data)
            return ParsedResponse()
        line, pos = data.rstrip(b"\r"), len(data)
    status = parse_status_line(line)

    chunked = False
    content_length = None
    while True:
        line, pos = _read_line(data, pos)
        if line is None:
            if not eof:
                return ParsedResponse(status, chunked=chunked)
            pos = len(data)
            break
        if not line:
            break
        lowered = line.lower()
        if b"transfer-encoding" in lowered and b"chunked" in lowered:
            chunked = True
            continue
        value = _header_value(line, b"content-length")
        if value is not None:
            try:
                content_length = int(value)
            except ValueError:
                logger.debug("Ignoring invalid Content-Length header %r", value)
            else:
                if content_length < 0:
                    content_length = None

    if chunked:
        body, complete = _dechunk(data, pos)
    elif content_length is not None:
        body = data[pos : pos + content_length]
        complete = len(body) == content_length
    else:
        body = _trim_line_terminator(data[pos:])
        complete = True

    return ParsedResponse(
        status,
        body=body,
        complete=complete,
        chunked=chunked,
        content_length=content_length,
    )
