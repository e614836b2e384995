from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from twisted.internet.protocol import ClientFactory, Protocol

from localhttp.core.reply import Reply
from localhttp.exceptions import MalformedStatusLine, NotConfigured
from localhttp.http.parser import parse_response
from localhttp.http.request import encode_request
from localhttp.http.status import ReplyError
from localhttp.settings import Settings

if TYPE_CHECKING:
    from twisted.internet.base import DelayedCall
    from twisted.internet.interfaces import IAddress, IConnector, IReactorTime
    from twisted.python.failure import Failure

    from localhttp.http.request import Request


logger = logging.getLogger(__name__)


class ReplyReader(Protocol):
    """Writes the request once connected and accumulates the response.

    Received bytes are appended to a buffer owned by this protocol. Parsing
    is deferred by ``settle_delay`` seconds after the last notification, so
    a burst of reads is parsed once. An incomplete response keeps the reader
    waiting for the next notification.
    """

    def __init__(
        self,
        reply: Reply,
        reactor: IReactorTime,
        host: str,
        user_agent: str,
        timeout: float = 0,
        settle_delay: float = 0.0,
    ) -> None:
        self.reply: Reply = reply
        self.host: str = host
        self.user_agent: str = user_agent
        self.timeout: float = timeout
        self.settle_delay: float = settle_delay
        self._reactor: IReactorTime = reactor
        self._buffer: bytearray = bytearray()
        self._settle_call: DelayedCall | None = None
        self._idle_check_size: int = 0
        self._timeout_call: DelayedCall | None = None
        self.reply.finished.addBoth(self._cancel_delayed_calls)

    def connectionMade(self) -> None:
        if self.reply.is_finished():
            # aborted while connecting
            self.transport.loseConnection()
            return
        self.reply.attach(self.transport)
        request = self.reply.request
        data = encode_request(request, self.host, self.user_agent)
        self.transport.write(data)
        logger.debug(
            "Sent %(request)r (%(size)d bytes)",
            {"request": request, "size": len(data)},
        )
        if self.timeout:
            self._timeout_call = self._reactor.callLater(
                self.timeout, self._timed_out
            )

    def dataReceived(self, data: bytes) -> None:
        if self.reply.is_finished():
            return
        self._buffer += data
        if self._settle_call is not None and self._settle_call.active():
            self._settle_call.reset(self.settle_delay)
        else:
            self._settle_call = self._reactor.callLater(
                self.settle_delay, self._settle
            )

    def connectionLost(self, reason: Failure) -> None:
        self._cancel_delayed_calls(None)
        self.reply.detach()
        if not self.reply.is_finished():
            logger.debug(
                "Connection closed while reading %(reply)r: %(reason)s",
                {"reply": self.reply, "reason": reason.getErrorMessage()},
            )
            self._attempt_parse(eof=True)

    def _settle(self) -> None:
        self._settle_call = None
        if not self.reply.is_finished():
            self._attempt_parse(eof=False)

    def _attempt_parse(self, eof: bool) -> None:
        try:
            parsed = parse_response(bytes(self._buffer), eof=eof)
        except MalformedStatusLine as e:
            logger.debug("%(error)s", {"error": e})
            self.reply.fail(
                ReplyError.MALFORMED_STATUS_LINE, "Malformed HTTP response from server"
            )
            return

        if parsed.complete:
            if not eof and not parsed.delimited and self._still_reading():
                return
            self.reply.complete(parsed)
        elif eof:
            self.reply.fail(
                ReplyError.INCOMPLETE_RESPONSE,
                "Connection closed before the response was complete",
                parsed,
            )
        else:
            logger.debug(
                "Response incomplete after %(size)d bytes, waiting for more",
                {"size": len(self._buffer)},
            )

    def _still_reading(self) -> bool:
        """Check again one reactor iteration later whether a body that only
        ends with the data is still growing.

        The transport reads a bounded amount per iteration, so an idle
        settle does not mean the socket was drained.
        """
        size = len(self._buffer)
        if size == self._idle_check_size:
            return False
        self._idle_check_size = size
        self._settle_call = self._reactor.callLater(0, self._settle)
        return True

    def _timed_out(self) -> None:
        self._timeout_call = None
        request = self.reply.request
        self.reply.cancel(
            ReplyError.TIMEOUT,
            f"Reading reply to {request.method} {request.target} took longer "
            f"than {self.timeout} seconds.",
        )

    def _cancel_delayed_calls(self, result):
        for call in (self._settle_call, self._timeout_call):
            if call is not None and call.active():
                call.cancel()
        self._settle_call = self._timeout_call = None
        return result


class ReplyClientFactory(ClientFactory):
    """Builds the :class:`ReplyReader` for one request.

    The :class:`~localhttp.core.reply.Reply` is created with the factory, so
    that callers hold it (and may abort it) before the connection is made.
    A factory serves a single connection.
    """

    noisy = False

    def __init__(
        self,
        request: Request,
        settings: Settings | None = None,
        reactor: IReactorTime | None = None,
    ) -> None:
        if reactor is None:
            from twisted.internet import reactor
        self.settings: Settings = settings if settings is not None else Settings()
        self.reactor = reactor
        self.reply: Reply = Reply(request)
        self.timeout: float = self.settings.getfloat("REPLY_TIMEOUT")
        self.settle_delay: float = self.settings.getfloat("REPLY_SETTLE_DELAY")
        for name, value in (
            ("REPLY_TIMEOUT", self.timeout),
            ("REPLY_SETTLE_DELAY", self.settle_delay),
        ):
            if value < 0:
                raise NotConfigured(f"{name} must not be negative, got {value}")

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.reply.request!r}>"

    def buildProtocol(self, addr: IAddress) -> ReplyReader:
        p = ReplyReader(
            self.reply,
            self.reactor,
            host=self.settings["REPLY_HOST"],
            user_agent=self.settings["USER_AGENT"],
            timeout=self.timeout,
            settle_delay=self.settle_delay,
        )
        p.factory = self
        return p

    def clientConnectionFailed(self, connector: IConnector, reason: Failure) -> None:
        """
        When a connection attempt fails, the request cannot be issued. The
        reply fails unless it was already aborted.
        """
        logger.warning(
            "Could not connect for %(request)r: %(reason)s",
            {"request": self.reply.request, "reason": reason.getErrorMessage()},
        )
        self.reply.fail(ReplyError.INCOMPLETE_RESPONSE, reason.getErrorMessage())


def request_unix(
    path: str,
    request: Request,
    settings: Settings | None = None,
    reactor=None,
) -> Reply:
    """Send ``request`` to the daemon listening on the Unix socket ``path``
    and return its :class:`~localhttp.core.reply.Reply`."""
    if reactor is None:
        from twisted.internet import reactor
    factory = ReplyClientFactory(request, settings, reactor)
    reactor.connectUNIX(
        path, factory, timeout=factory.settings.getint("REPLY_CONNECT_TIMEOUT")
    )
    return factory.reply
