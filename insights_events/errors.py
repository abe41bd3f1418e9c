from typing import Optional

from insights_events.constants import (
    EXIT_CODE_FAILURE,
    EXIT_CODE_INVALID_CONFIGURATION,
    EXIT_CODE_INVALID_INPUT,
    EXIT_CODE_REMOTE_REJECTED,
    EXIT_CODE_TRANSPORT_ERROR,
)


class InsightsError(Exception):
    """
    Generic insights-events error.

    Args:
        message (str): The error message.
    """
    def __init__(self, message: str = "An error occurred while delivering events."):
        self.message = message
        super().__init__(self.message)

    def get_exit_code(self) -> int:
        """
        Get the exit code associated with this error.

        Returns:
            int: The exit code.
        """
        return EXIT_CODE_FAILURE


class InvalidInputError(InsightsError):
    """
    Error raised when an event is rejected before touching the buffer.

    Args:
        message (str): The error message.
    """
    def __init__(self, message: str = "Invalid event."):
        super().__init__(message)

    def get_exit_code(self) -> int:
        return EXIT_CODE_INVALID_INPUT


class EncodingError(InsightsError):
    """
    Error raised when an event record cannot be serialized to JSON.

    Args:
        name (str): The event type being recorded.
        reason (Optional[str]): The underlying serialization failure.
    """
    def __init__(self, name: str = "", reason: Optional[str] = None,
                 message: str = "Unable to encode event {name!r}"):
        info = f": {reason}" if reason else ""
        self.name = name
        self.reason = reason
        super().__init__(message.format(name=name) + info)

    def get_exit_code(self) -> int:
        return EXIT_CODE_INVALID_INPUT


class ConfigurationError(InsightsError):
    """
    Error raised when the client configuration cannot be resolved.
    """
    def __init__(self, message: str = "Insights configuration is incomplete."):
        super().__init__(message)

    def get_exit_code(self) -> int:
        return EXIT_CODE_INVALID_CONFIGURATION


class TransportError(InsightsError):
    """
    Error raised when a batch could not be delivered due to a network failure.

    The batch has already been dropped from the buffer when this is raised.

    Args:
        reason (Optional[str]): The underlying failure.
        message (str): The error message template.
    """
    def __init__(self, reason: Optional[str] = None,
                 message: str = "Failed to send web request{info}"):
        self.reason = reason
        info = f": {reason}" if reason else ""
        super().__init__(message.format(info=info))

    def get_exit_code(self) -> int:
        return EXIT_CODE_TRANSPORT_ERROR


class RequestTimeoutError(TransportError):
    """
    Error raised when a request does not complete within its timeout.
    """
    def __init__(self, reason: Optional[str] = None,
                 message: str = "Request timed out{info}"):
        super().__init__(reason=reason, message=message)


class RequestCancelledError(TransportError):
    """
    Error raised when an outstanding request is aborted by its cancellation signal.
    """
    def __init__(self, reason: Optional[str] = None,
                 message: str = "Request cancelled{info}"):
        super().__init__(reason=reason, message=message)


class RemoteRejectedError(InsightsError):
    """
    Error raised when the collector answers with anything other than 200.

    Args:
        status_code (int): The HTTP status code.
        reason (str): The HTTP reason phrase.
    """
    def __init__(self, status_code: int, reason: str = "",
                 message: str = "Bad Response: {status_code} - {reason}"):
        self.status_code = status_code
        self.reason = reason
        super().__init__(message.format(status_code=status_code, reason=reason))

    def get_exit_code(self) -> int:
        return EXIT_CODE_REMOTE_REJECTED
