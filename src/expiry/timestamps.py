"""Timestamps and their order-preserving byte encoding.

Encoded form (12 bytes):
- 8 bytes: seconds since the Unix epoch, offset by 2**63, big-endian unsigned
- 4 bytes: nanosecond fraction, big-endian unsigned

Comparing two encodings byte-by-byte gives the same answer as comparing
the timestamps, so byte-ordered stores can serve as a time index.
"""

from __future__ import annotations

import struct
import time
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from expiry.errors import DecodeError

NANOS_PER_SECOND = 1_000_000_000
ENCODED_SIZE = 12

_SECONDS_OFFSET = 1 << 63
_FORMAT = struct.Struct(">QI")

MIN_SECONDS = -(1 << 63)
MAX_SECONDS = (1 << 63) - 1


@dataclass(frozen=True, order=True)
class Timestamp:
    """A point in time with nanosecond precision."""

    seconds: int
    nanosecond: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.nanosecond < NANOS_PER_SECOND:
            raise ValueError(f"nanosecond out of range: {self.nanosecond}")

    @classmethod
    def now(cls) -> Timestamp:
        return cls.from_ns(time.time_ns())

    @classmethod
    def from_ns(cls, ns: int) -> Timestamp:
        seconds, nanosecond = divmod(ns, NANOS_PER_SECOND)
        return cls(seconds, nanosecond)

    @classmethod
    def from_datetime(cls, value: datetime) -> Timestamp:
        """Convert a datetime. Naive datetimes are taken to be UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        delta = value - datetime(1970, 1, 1, tzinfo=UTC)
        return cls.from_ns(_timedelta_ns(delta))

    def to_ns(self) -> int:
        return self.seconds * NANOS_PER_SECOND + self.nanosecond

    def to_datetime(self) -> datetime:
        """Convert to an aware UTC datetime (truncated to microseconds)."""
        return datetime(1970, 1, 1, tzinfo=UTC) + timedelta(
            seconds=self.seconds, microseconds=self.nanosecond // 1000
        )

    def seconds_until(self, other: Timestamp) -> float:
        """Seconds from this timestamp to ``other`` (negative if earlier)."""
        return (other.to_ns() - self.to_ns()) / NANOS_PER_SECOND

    def isoformat(self) -> str:
        return self.to_datetime().isoformat()

    def __add__(self, other: object) -> Timestamp:
        if isinstance(other, timedelta):
            return Timestamp.from_ns(self.to_ns() + _timedelta_ns(other))
        return NotImplemented

    def __sub__(self, other: object):
        if isinstance(other, timedelta):
            return Timestamp.from_ns(self.to_ns() - _timedelta_ns(other))
        if isinstance(other, Timestamp):
            return timedelta(microseconds=(self.to_ns() - other.to_ns()) // 1000)
        return NotImplemented

    def __str__(self) -> str:
        return f"{self.seconds}.{self.nanosecond:09d}"


def _timedelta_ns(delta: timedelta) -> int:
    # Integer arithmetic; total_seconds() would lose precision
    return (
        (delta.days * 86400 + delta.seconds) * NANOS_PER_SECOND
        + delta.microseconds * 1000
    )


def encode(value: Timestamp) -> bytes:
    """Encode a timestamp into its 12-byte sortable form.

    Raises:
        ValueError: If the seconds field does not fit in 64 signed bits.
    """
    if not MIN_SECONDS <= value.seconds <= MAX_SECONDS:
        raise ValueError(f"seconds out of range: {value.seconds}")
    return _FORMAT.pack(value.seconds + _SECONDS_OFFSET, value.nanosecond)


def decode(blob: bytes) -> Timestamp:
    """Decode the 12-byte form produced by :func:`encode`.

    Raises:
        DecodeError: If the input has the wrong size or an invalid
            nanosecond field.
    """
    if len(blob) != ENCODED_SIZE:
        raise DecodeError(
            f"expected {ENCODED_SIZE} bytes, got {len(blob)}"
        )
    raw_seconds, nanosecond = _FORMAT.unpack(bytes(blob))
    if nanosecond >= NANOS_PER_SECOND:
        raise DecodeError(f"nanosecond field out of range: {nanosecond}")
    return Timestamp(raw_seconds - _SECONDS_OFFSET, nanosecond)


def time_key(value: Timestamp, suffix: bytes) -> bytes:
    """Build a time-index record key: the encoded time followed by ``suffix``."""
    return encode(value) + suffix


def split_time_key(blob: bytes) -> tuple[Timestamp, bytes]:
    """Split a time-index record key into its timestamp and suffix."""
    if len(blob) < ENCODED_SIZE:
        raise DecodeError(
            f"time key shorter than {ENCODED_SIZE} bytes: {len(blob)}"
        )
    return decode(blob[:ENCODED_SIZE]), bytes(blob[ENCODED_SIZE:])
