"""Exception types raised across the transfer evaluation pipeline."""


class TransferEvalError(Exception):
    """Base class for all service errors."""
    pass


class InvalidCoursesError(TransferEvalError):
    """Raised when a matching request does not carry a list of courses."""
    pass


class ServiceUnavailableError(TransferEvalError):
    """Raised when an operation needs a reasoning service and none is configured."""
    pass


class InferenceError(TransferEvalError):
    """Base for recoverable reasoning-service failures."""
    pass


class MalformedResponseError(InferenceError):
    """The reasoning service replied with non-text, unparseable or mis-shaped content."""
    pass


class TransportError(InferenceError):
    """The call to the reasoning service itself failed."""
    pass


class MatchingFailedError(TransferEvalError):
    """Even the deterministic matcher could not produce a result."""
    pass


class DocumentValidationError(TransferEvalError):
    """Raised when an uploaded transcript fails validation."""
    pass
