"""
Wire format of the timestamp-echo protocol.

A probe datagram carries nothing but the sender's clock reading, written as
ASCII decimal nanoseconds since the Unix epoch. The responder mirrors the
bytes untouched, so the initiator can compute the round trip from its own
clock alone.
"""

from dataclasses import dataclass

RECV_BUFFER_SIZE = 9000
# Nanoseconds since the epoch stay within 20 digits until the year 5138
MAX_TIMESTAMP_DIGITS = 20


class ProtocolError(ValueError):
    """Raised when an echoed payload is not a timestamp."""


def encode_timestamp(ns: int) -> bytes:
    return str(ns).encode('ascii')


def decode_timestamp(payload: bytes) -> int:
    try:
        text = payload.decode('ascii')
    except UnicodeDecodeError as e:
        raise ProtocolError(f"Payload is not ASCII: {payload[:32]!r}") from e

    if not text.isdigit() or len(text) > MAX_TIMESTAMP_DIGITS:
        raise ProtocolError(f"Payload is not a timestamp: {text[:32]!r}")
    try:
        return int(text)
    except ValueError as e:
        raise ProtocolError(f"Payload is not a timestamp: {text[:32]!r}") from e


def truncating_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


@dataclass(frozen=True)
class Sample:
    """One probe exchange, both ends read from the initiator's clock."""
    sent_ns: int
    received_ns: int

    @property
    def rtt_us(self) -> int:
        return truncating_div(self.received_ns - self.sent_ns, 1000)
