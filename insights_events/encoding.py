"""
Event serialization and the streaming gzip body used to post batches.
"""
import json
import zlib
from typing import Any, Iterable, Iterator, Mapping, Sequence

from insights_events.constants import COMPRESSION_CHUNK_SIZE, EVENT_TYPE_KEY
from insights_events.errors import EncodingError, InvalidInputError

# wbits=31 selects the gzip container instead of a raw zlib stream
GZIP_WBITS = 16 + zlib.MAX_WBITS

SEPARATOR = ","


def encode_event(name: str, record: Mapping[str, Any]) -> str:
    """
    Serialize one event to the compact JSON form stored in the buffer.

    The event type is written under ``eventType``, replacing any value the
    record already carries there. The caller's mapping is left untouched.

    Args:
        name (str): The event type.
        record (Mapping[str, Any]): The event attributes.

    Returns:
        str: The ASCII-only JSON object, without surrounding whitespace.

    Raises:
        InvalidInputError: If the name is empty or the record is missing.
        EncodingError: If the record holds values JSON cannot represent.
    """
    if not isinstance(name, str) or not name:
        raise InvalidInputError("No Event Name")
    if record is None:
        raise InvalidInputError("Event data is None")
    if not isinstance(record, Mapping):
        raise InvalidInputError(
            f"Event data must be a mapping, got {type(record).__name__}"
        )

    payload = dict(record)
    payload[EVENT_TYPE_KEY] = name

    try:
        return json.dumps(
            payload,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=True,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise EncodingError(name=name, reason=str(e)) from e


def iter_document(fragments: Sequence[str]) -> Iterator[str]:
    """
    Yield the JSON array document for a batch piece by piece.
    """
    yield "["
    for index, fragment in enumerate(fragments):
        if index:
            yield SEPARATOR
        yield fragment
    yield "]"


def gzip_stream(
    chunks: Iterable[str],
    chunk_size: int = COMPRESSION_CHUNK_SIZE,
    level: int = zlib.Z_DEFAULT_COMPRESSION,
) -> Iterator[bytes]:
    """
    Compress text chunks lazily into a gzip stream.

    Input is pulled only as the consumer asks for more output, so neither the
    whole document nor the whole compressed payload is materialized here.

    Args:
        chunks: Text pieces of the document, in order.
        chunk_size: Upper bound on the bytes handed to the compressor at once.
        level: zlib compression level.

    Yields:
        bytes: Compressed data, the last item completing the gzip trailer.
    """
    compressor = zlib.compressobj(level, zlib.DEFLATED, GZIP_WBITS)

    for chunk in chunks:
        data = chunk.encode("utf-8")
        for start in range(0, len(data), chunk_size):
            out = compressor.compress(data[start:start + chunk_size])
            if out:
                yield out

    tail = compressor.flush()
    if tail:
        yield tail
