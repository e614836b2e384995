"""
tests: this package contains all localhttp unittests
"""


def chunked(payload: bytes, size: int) -> bytes:
    """Return ``payload`` in chunked transfer encoding, ``size`` bytes per
    chunk, terminated by the zero-sized chunk."""
    out = b""
    for i in range(0, len(payload), size):
        piece = payload[i : i + size]
        out += b"%x\r\n" % len(piece) + piece + b"\r\n"
    return out + b"0\r\n\r\n"


def split_at(data: bytes, *offsets: int) -> list[bytes]:
    """Split ``data`` at the given (increasing) offsets."""
    bounds = [0, *offsets, len(data)]
    return [data[a:b] for a, b in zip(bounds, bounds[1:])]
