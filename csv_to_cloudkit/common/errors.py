"""Domain errors and failure typing."""


class PublishError(Exception):
    """Base class for publish failures."""

    error_code = "PUBLISH_ERROR"


class ConfigError(PublishError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class InputValidationError(PublishError):
    """Raised when the CSV input breaks its contract. Aborts the run."""

    error_code = "INPUT_VALIDATION_ERROR"


class InvalidKeyError(PublishError):
    """Raised when the signing key cannot be loaded. Aborts the run."""

    error_code = "INVALID_KEY"


class RecordError(PublishError):
    """Raised for a single record's failure; the run may continue past it."""

    error_code = "RECORD_ERROR"


class TransportError(RecordError):
    """Network level failure: DNS, connection reset, timeout."""

    error_code = "TRANSPORT_ERROR"


class RemoteError(RecordError):
    """The service answered with an error status or a record-level error."""

    error_code = "REMOTE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        server_error_code: str | None = None,
        reason: str | None = None,
        payload=None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.server_error_code = server_error_code
        self.reason = reason
        self.payload = payload
