from zope.interface import Attribute, Interface


class IReply(Interface):
    """A single HTTP response read off a local socket, consumed like a
    sequential file."""

    finished = Attribute(
        "Deferred fired with the reply once it reaches a terminal state"
    )
    error = Attribute("ReplyError of a failed reply, None otherwise")
    error_string = Attribute("Human readable message that goes with error")

    def read(size=-1):
        """Return up to ``size`` bytes of the body from the current position,
        ``b""`` once the whole body was read, or ``None`` while the response
        is still being received."""

    def abort():
        """Cancel the reply if it is not finished yet and close the
        connection"""

    def is_finished():
        """Return True once the reply reached a terminal state"""
