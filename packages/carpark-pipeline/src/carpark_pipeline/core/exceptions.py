class PipelineError(Exception):
    """Base pipeline exception."""


class FetchError(PipelineError):
    """Raised when a source document could not be fetched."""

    transient = True

    def __init__(self, message: str, source: str = "unknown", attempts: int = 1) -> None:
        super().__init__(message)
        self.source = source
        self.attempts = attempts

    @property
    def kind(self) -> str:
        return "transient" if self.transient else "permanent"


class TransientFetchError(FetchError):
    """Raised when a fetch failed in a way that can be retried."""

    transient = True


class PermanentFetchError(FetchError):
    """Raised when a fetch failed with a not-found class response."""

    transient = False


class ParseError(PipelineError):
    """Raised when a single record cannot be extracted from a document."""


class MergeError(PipelineError):
    """Raised when charging data cannot be joined onto a facility."""


class ValidationRejected(PipelineError):
    """Raised when a facility fails structural checks."""


class AggregateEmptyError(PipelineError):
    """Raised when no facility survives validation."""


class SnapshotStoreError(PipelineError):
    """Raised when persisted snapshot state cannot be read or written."""
