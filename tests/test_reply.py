import pytest
from twisted.internet.testing import StringTransport
from zope.interface.verify import verifyObject

from localhttp.core.reply import Reply, ReplyState
from localhttp.http import ReplyError, Request, parse_response
from localhttp.interfaces import IReply

BODY = b"0123456789"
RESPONSE = b"HTTP/1.1 200 OK\r\nContent-Length: 10\r\n\r\n" + BODY


@pytest.fixture
def reply():
    return Reply(Request("/1.0"))


@pytest.fixture
def finished_reply(reply):
    reply.complete(parse_response(RESPONSE))
    return reply


def test_interface(reply):
    assert verifyObject(IReply, reply)


def test_initial_state(reply):
    assert reply.state is ReplyState.READING
    assert not reply.is_finished()
    assert reply.status is None
    assert reply.status_code is None
    assert reply.reason is None
    assert reply.error is None
    assert reply.error_string == ""
    assert not reply.finished.called


def test_read_while_reading(reply):
    assert reply.read() is None
    assert reply.read(10) is None
    assert reply.bytes_available() == 0


def test_complete(finished_reply):
    assert finished_reply.state is ReplyState.FINISHED
    assert finished_reply.is_finished()
    assert finished_reply.status_code == 200
    assert finished_reply.reason == "OK"
    assert finished_reply.error is None
    assert finished_reply.bytes_available() == len(BODY)


def test_finished_fires_with_reply(reply):
    results = []
    reply.finished.addCallback(results.append)
    reply.complete(parse_response(RESPONSE))
    assert results == [reply]


def test_sequential_read(finished_reply):
    assert finished_reply.read(4) == b"0123"
    assert finished_reply.read(4) == b"4567"
    assert finished_reply.bytes_available() == 2
    assert finished_reply.read(4) == b"89"
    assert finished_reply.bytes_available() == 0


def test_read_all(finished_reply):
    assert finished_reply.read(3) == b"012"
    assert finished_reply.read() == b"3456789"


def test_read_zero(finished_reply):
    assert finished_reply.read(0) == b""
    assert finished_reply.read() == BODY


def test_read_past_end_is_idempotent(finished_reply):
    assert finished_reply.read(100) == BODY
    for _ in range(5):
        assert finished_reply.read(100) == b""
        assert finished_reply.read() == b""


def test_http_error_keeps_body(reply):
    detail = b'{"error":"not found"}'
    data = b"HTTP/1.1 404 Not Found\r\nContent-Length: %d\r\n\r\n" % len(detail)
    reply.complete(parse_response(data + detail))
    assert reply.state is ReplyState.ERRORED
    assert reply.error is ReplyError.NOT_FOUND
    assert reply.error_string == "Not Found"
    assert reply.read() == detail


def test_fail_keeps_partial_body(reply):
    parsed = parse_response(b"HTTP/1.1 200 OK\r\nContent-Length: 20\r\n\r\npartial")
    reply.fail(ReplyError.INCOMPLETE_RESPONSE, "closed", parsed)
    assert reply.state is ReplyState.ERRORED
    assert reply.error is ReplyError.INCOMPLETE_RESPONSE
    assert reply.error_string == "closed"
    assert reply.status_code == 200
    assert reply.read() == b"partial"


def test_fail_without_body(reply):
    reply.fail(ReplyError.MALFORMED_STATUS_LINE, "Malformed HTTP response from server")
    assert reply.state is ReplyState.ERRORED
    assert reply.status is None
    assert reply.read() == b""


def test_abort(reply):
    transport = StringTransport()
    reply.attach(transport)
    results = []
    reply.finished.addCallback(results.append)
    reply.abort()
    assert reply.state is ReplyState.CANCELED
    assert reply.error is ReplyError.CANCELED
    assert reply.error_string == "Operation canceled"
    assert transport.disconnecting
    assert results == [reply]
    assert reply.read() == b""


def test_abort_closes_transport_once(reply):
    closed = []

    class Transport(StringTransport):
        def loseConnection(self):
            closed.append(True)
            super().loseConnection()

    reply.attach(Transport())
    reply.abort()
    reply.abort()
    reply.complete(parse_response(RESPONSE))
    assert closed == [True]


def test_abort_after_finish_is_noop(finished_reply):
    finished_reply.abort()
    assert finished_reply.state is ReplyState.FINISHED
    assert finished_reply.error is None
    assert finished_reply.read() == BODY


def test_terminal_states_are_final(reply):
    reply.abort()
    reply.complete(parse_response(RESPONSE))
    reply.fail(ReplyError.INCOMPLETE_RESPONSE, "closed")
    reply.cancel(ReplyError.TIMEOUT, "late")
    assert reply.state is ReplyState.CANCELED
    assert reply.error is ReplyError.CANCELED
    assert reply.read() == b""


def test_complete_closes_transport(reply):
    transport = StringTransport()
    reply.attach(transport)
    reply.complete(parse_response(RESPONSE))
    assert transport.disconnecting


def test_detached_transport_is_not_closed(reply):
    transport = StringTransport()
    reply.attach(transport)
    reply.detach()
    reply.abort()
    assert not transport.disconnecting


def test_repr(reply):
    assert repr(reply) == "<Reply <GET /1.0> READING>"


def test_complete_requires_status_line(reply):
    with pytest.raises(ValueError, match="without a status line"):
        reply.complete(parse_response(b""))
    assert reply.state is ReplyState.READING
