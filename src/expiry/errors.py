"""Error taxonomy for expiry.

- NotFoundError: a key or time is absent from a table or index. Expected in
  normal operation; swallowed during internal bookkeeping.
- DecodeError: malformed bytes handed to the timestamp codec.
"""


class ExpiryError(Exception):
    """Base class for expiry errors."""

    pass


class NotFoundError(ExpiryError, KeyError):
    """Key not present in a table or index."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep messages readable
        return str(self.args[0]) if self.args else "not found"


class DecodeError(ExpiryError, ValueError):
    """Bytes could not be decoded into a timestamp."""

    pass
