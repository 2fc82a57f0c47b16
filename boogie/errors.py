"""Error taxonomy shared by the codecs, stores, and index clients."""

from __future__ import annotations

NO_INDEX = "NO_INDEX"


class BoogieError(Exception):
    """Base class for all Boogie errors."""


# Format errors: malformed or truncated snapshot/manifest bytes.


class FormatError(BoogieError):
    """Raised when persisted snapshot data cannot be decoded."""


class TruncatedInput(FormatError):
    """Raised when a snapshot is shorter than its header declares."""


class HeaderInvalid(FormatError):
    """Raised when a snapshot header is unusable (zero dim/count, trailing bytes)."""


class MalformedManifest(FormatError):
    """Raised when an ID manifest is not a JSON array of strings."""


# Consistency errors: detected before anything is written.


class ConsistencyError(BoogieError):
    """Raised when vectors, identifiers, or records disagree with each other."""


class EmptyInput(ConsistencyError):
    """Raised when a snapshot would contain no rows."""


class DimensionMismatch(ConsistencyError):
    """Raised when a vector does not have the expected dimension."""

    def __init__(self, message: str, *, index: int | None = None, expected: int, actual: int):
        super().__init__(message)
        self.index = index
        self.expected = expected
        self.actual = actual


class LengthMismatch(ConsistencyError):
    """Raised when the number of vectors and identifiers differ."""


class InvalidRecord(ConsistencyError):
    """Raised when a source record fails validation."""

    def __init__(self, message: str, *, row: int | None = None):
        super().__init__(message)
        self.row = row


class UnavailableError(BoogieError):
    """Raised when a required local resource is missing."""


class MetadataUnavailable(UnavailableError):
    """Raised when the metadata document is missing or unparsable."""


class InvalidArgument(BoogieError, ValueError):
    """Raised when a call is rejected locally before any network round trip."""


# Remote errors: the backend answered with an application error.


class RemoteError(BoogieError):
    """Backend reachable but reported an error."""

    operation = "request"

    def __init__(self, code: str, message: str, *, status_code: int | None = None):
        super().__init__(f"{self.operation} failed [{code}]: {message}")
        self.code = code
        self.message = message
        self.status_code = status_code

    @property
    def index_not_loaded(self) -> bool:
        """True when the backend has no index built yet."""
        return self.code == NO_INDEX


class LoadFailed(RemoteError):
    operation = "load"


class QueryFailed(RemoteError):
    operation = "query"


class StatsFailed(RemoteError):
    operation = "stats"


# Transport errors: the backend could not be talked to at all.


class TransportError(BoogieError):
    """Raised when the backend is unreachable or replies with garbage."""


class Unreachable(TransportError):
    """Raised on connection failures, timeouts, and failed health checks."""


class MalformedResponse(TransportError):
    """Raised when a success response body cannot be decoded."""
