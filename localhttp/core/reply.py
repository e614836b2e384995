from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from twisted.internet.defer import Deferred
from zope.interface import implementer

from localhttp.http.status import ReplyError
from localhttp.interfaces import IReply

if TYPE_CHECKING:
    from twisted.internet.interfaces import ITransport

    from localhttp.http.parser import ParsedResponse, StatusLine
    from localhttp.http.request import Request


logger = logging.getLogger(__name__)


class ReplyState(Enum):
    # Waiting for more bytes from the transport
    READING = 1

    # Response fully received, HTTP status below 400
    FINISHED = 2

    # Reply ended with an error category set, the body may still be usable
    ERRORED = 3

    # Aborted by the caller or by the deadline, the body is dropped
    CANCELED = 4


@implementer(IReply)
class Reply:
    """Caller-side handle of a request sent over a local socket.

    The reply starts in :attr:`ReplyState.READING` and moves exactly once to
    one of the terminal states, at which point :attr:`finished` fires with
    the reply itself. Failures never errback: they are reported through
    :attr:`error` and :attr:`error_string`.

    Once finished, the body is consumed with :meth:`read`, which only moves
    forward.
    """

    def __init__(self, request: Request) -> None:
        self.request: Request = request
        self.state: ReplyState = ReplyState.READING
        self.status: StatusLine | None = None
        self.chunked: bool = False
        self.error: ReplyError | None = None
        self.error_string: str = ""
        self.finished: Deferred[Reply] = Deferred()

        self._body: bytes = b""
        self._offset: int = 0
        self._transport: ITransport | None = None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.request!r} {self.state.name}>"

    @property
    def status_code(self) -> int | None:
        return None if self.status is None else self.status.status_code

    @property
    def reason(self) -> str | None:
        return None if self.status is None else self.status.reason

    def is_finished(self) -> bool:
        return self.state is not ReplyState.READING

    def bytes_available(self) -> int:
        return len(self._body) - self._offset

    def read(self, size: int = -1) -> bytes | None:
        if self.state is ReplyState.READING:
            return None
        if size < 0:
            end = len(self._body)
        else:
            end = min(len(self._body), self._offset + size)
        data = self._body[self._offset : end]
        self._offset = end
        return data

    def abort(self) -> None:
        self.cancel(ReplyError.CANCELED, "Operation canceled")

    def cancel(self, error: ReplyError, message: str) -> None:
        """Move a reply that is still reading to the canceled state, dropping
        anything received so far."""
        if self.is_finished():
            return
        logger.debug("Canceling %(reply)r: %(message)s", {"reply": self, "message": message})
        self.error = error
        self.error_string = message
        self._body = b""
        self._finish(ReplyState.CANCELED)

    def complete(self, parsed: ParsedResponse) -> None:
        """Finish the reply with a fully framed response."""
        if self.is_finished():
            return
        if parsed.status is None:
            raise ValueError("Cannot complete a reply without a status line")
        self.status = parsed.status
        self.chunked = parsed.chunked
        self._body = parsed.body
        error = parsed.error
        if error is None:
            self._finish(ReplyState.FINISHED)
            return
        self.error = error
        self.error_string = parsed.status.reason
        logger.debug(
            "%(reply)r got HTTP %(status)d: %(error)s",
            {"reply": self, "status": parsed.status.status_code, "error": error},
        )
        self._finish(ReplyState.ERRORED)

    def fail(
        self,
        error: ReplyError,
        message: str,
        parsed: ParsedResponse | None = None,
    ) -> None:
        """Finish the reply with an error. Whatever ``parsed`` holds is kept
        so that partial payloads stay readable."""
        if self.is_finished():
            return
        if parsed is not None:
            self.status = parsed.status
            self.chunked = parsed.chunked
            self._body = parsed.body
        self.error = error
        self.error_string = message
        logger.debug(
            "%(reply)r failed with %(error)s: %(message)s",
            {"reply": self, "error": error, "message": message},
        )
        self._finish(ReplyState.ERRORED)

    def attach(self, transport: ITransport) -> None:
        self._transport = transport

    def detach(self) -> None:
        self._transport = None

    def _finish(self, state: ReplyState) -> None:
        self.state = state
        self._close_transport()
        self.finished.callback(self)

    def _close_transport(self) -> None:
        transport, self._transport = self._transport, None
        if transport is not None:
            transport.loseConnection()
