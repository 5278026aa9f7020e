class ScalerError(Exception):
    """Base class for failures surfaced by a scaling poll."""


class BackendUnavailable(ScalerError):
    """The queue backend could not be reached or answered with an error status."""


class MalformedResponse(ScalerError):
    """The queue backend answered with data that does not have the expected shape."""


class InvalidInput(ScalerError, ValueError):
    """Negative or non-integer concurrency, backlog or duration values."""
