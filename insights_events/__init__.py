from insights_events.buffer import Batch, EventBuffer
from insights_events.client import InsightsClient, new_client
from insights_events.config import InsightsConfig, get_insights_config
from insights_events.errors import (
    ConfigurationError,
    EncodingError,
    InsightsError,
    InvalidInputError,
    RemoteRejectedError,
    RequestCancelledError,
    RequestTimeoutError,
    TransportError,
)
from insights_events.scheduler import PeriodicSync
from insights_events.transport import (
    AsyncPoster,
    LoggingErrorSink,
    StandardPoster,
    StreamErrorSink,
)

__all__ = [
    "Batch",
    "EventBuffer",
    "InsightsClient",
    "new_client",
    "InsightsConfig",
    "get_insights_config",
    "PeriodicSync",
    "AsyncPoster",
    "StandardPoster",
    "LoggingErrorSink",
    "StreamErrorSink",
    "InsightsError",
    "InvalidInputError",
    "EncodingError",
    "ConfigurationError",
    "TransportError",
    "RequestTimeoutError",
    "RequestCancelledError",
    "RemoteRejectedError",
]
