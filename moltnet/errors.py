"""Exceptions raised by the collector."""

from typing import Optional


class MoltnetError(Exception):
    """Base class for collector errors."""


class RemoteError(MoltnetError):
    """Talking to the Moltbook API failed."""


class RemoteUnavailable(RemoteError):
    """Network failure or non-success HTTP status from the Moltbook API.

    Retryable by re-running the collection, not within a run.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteMalformed(RemoteError):
    """The API answered, but not with the payload shape we expect."""


class StoreUnavailable(MoltnetError):
    """The database could not be opened or written."""
