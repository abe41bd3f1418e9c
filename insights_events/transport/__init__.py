from .posters import AsyncPoster, Poster, StandardPoster
from .sinks import ErrorSink, LoggingErrorSink, StreamErrorSink
from .http_utils import send_request

__all__ = [
    "AsyncPoster",
    "Poster",
    "StandardPoster",
    "ErrorSink",
    "LoggingErrorSink",
    "StreamErrorSink",
    "send_request",
]
