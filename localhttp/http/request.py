"""
This module implements the Request class, which represents the single HTTP
request sent over a local socket, and the encoder that turns it into
HTTP/1.1 wire bytes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from localhttp.utils.python import to_bytes

if TYPE_CHECKING:
    # typing.Self requires Python 3.11
    from typing_extensions import Self


# Methods that carry a form-encoded body
BODY_METHODS = frozenset({"POST", "PUT"})


class Request:
    """Represents an HTTP request to a local daemon.

    ``target`` is the request target as it goes on the request line, i.e. a
    path plus an optional query string. There is no scheme or host: the
    transport is not routed by name.
    """

    attributes: tuple[str, ...] = ("target", "method", "body", "encoding")
    """A tuple of :class:`str` objects containing the name of all public
    attributes of the class that are also keyword parameters of the
    ``__init__`` method.

    Currently used by :meth:`Request.replace`.
    """

    def __init__(
        self,
        target: str,
        method: str = "GET",
        body: bytes | str | None = None,
        encoding: str = "utf-8",
    ) -> None:
        self._encoding: str = encoding  # this one has to be set first
        self._method: str = str(method).upper()
        self._set_target(target)
        self._set_body(body)

    @property
    def method(self) -> str:
        return self._method

    @property
    def target(self) -> str:
        return self._target

    def _set_target(self, target: str) -> None:
        if not isinstance(target, str):
            raise TypeError(
                f"Request target must be str, got {type(target).__name__}"
            )
        self._target = target or "/"

    @property
    def body(self) -> bytes | None:
        return self._body

    def _set_body(self, body: str | bytes | None) -> None:
        self._body = None if body is None else to_bytes(body, self.encoding)

    @property
    def encoding(self) -> str:
        return self._encoding

    def __repr__(self) -> str:
        return f"<{self.method} {self.target}>"

    def copy(self) -> Self:
        return self.replace()

    def replace(self, *args: Any, **kwargs: Any) -> Self:
        """Create a new Request with the same attributes except for those given new values"""
        for x in self.attributes:
            kwargs.setdefault(x, getattr(self, x))
        return self.__class__(*args, **kwargs)


def encode_request(request: Request, host: str, user_agent: str) -> bytes:
    """Return the HTTP/1.1 wire representation of ``request``.

    Only POST and PUT requests carry a body; they always get a form
    ``Content-Type`` and, when a body is set, a ``Content-Length``. The
    header block ends with an empty line and the body follows it verbatim.
    """
    data = bytearray()
    data += to_bytes(request.method, "ascii")
    data += b" "
    data += to_bytes(request.target, request.encoding)
    data += b" HTTP/1.1\r\n"
    data += b"Host: " + to_bytes(host, "ascii") + b"\r\n"
    data += b"User-Agent: " + to_bytes(user_agent, "ascii") + b"\r\n"

    body = b""
    if request.method in BODY_METHODS:
        data += b"Content-Type: application/x-www-form-urlencoded\r\n"
        if request.body is not None:
            body = request.body
            data += b"Content-Length: " + str(len(body)).encode("ascii") + b"\r\n"

    data += b"\r\n"
    data += body
    return bytes(data)
