"""Failure taxonomy for the lookup pipeline. NotFound is a result, not an exception."""

from card_lookup.models.entities import Failed, FailureKind


class LookupFailure(Exception):
    """Base for failures that end the current lookup run (never the process)."""

    kind: FailureKind = FailureKind.service_error

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_result(self) -> Failed:
        return Failed(kind=self.kind, reason=self.message)


class CaptureFailure(LookupFailure):
    kind = FailureKind.capture_failure


class ValidationFailure(LookupFailure):
    kind = FailureKind.validation_failure


class InvalidCredential(LookupFailure):
    kind = FailureKind.invalid_credential


class RateLimited(LookupFailure):
    kind = FailureKind.rate_limited


class ServiceError(LookupFailure):
    """Non-success response or transport failure from an external service."""

    kind = FailureKind.service_error

    def __init__(self, message: str, *, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body
