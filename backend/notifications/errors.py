"""
Traffic Notifier Errors

Every pipeline stage either returns a well-formed value or raises one of these.
The retry policy only looks at ``retryable``; everything else is terminal.
"""

from typing import Optional


class TrafficNotifierError(Exception):
    """Base class for classified pipeline failures."""

    retryable = False

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "stage": self.stage,
            "retryable": self.retryable,
        }


class ConfigurationError(TrafficNotifierError):
    """Missing or invalid credentials / settings. Raised before any network call."""


class InputValidationError(TrafficNotifierError, ValueError):
    """Malformed arguments. The call site has to be fixed."""


class ProviderDataError(TrafficNotifierError):
    """The provider answered, but cannot satisfy this particular request."""


class NoRouteFoundError(ProviderDataError):
    pass


class MessageParseError(ProviderDataError):
    """Structured output did not match the message schema."""


class MissingOutputError(ProviderDataError):
    """The language model returned no content at all."""


class TransientProviderError(TrafficNotifierError):
    """Network faults, timeouts and upstream 5xx. Safe to retry."""

    retryable = True


class PipelineStageError(TrafficNotifierError):
    """Terminal failure of a stage after the retry policy gave up."""

    def __init__(self, stage: str, attempts: int, cause: BaseException):
        super().__init__(
            f"Stage '{stage}' failed after {attempts} attempt(s): {cause}",
            stage=stage,
        )
        self.attempts = attempts
        self.cause = cause
