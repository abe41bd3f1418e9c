import json
import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple

import click
import httpx

from insights_events.client import InsightsClient
from insights_events.config import get_insights_config
from insights_events.constants import EVENT_TYPE_KEY, MAX_BUFFER_SIZE
from insights_events.error_handlers import handle_cmd_exception
from insights_events.errors import InvalidInputError
from insights_events.meta import get_version
from insights_events.transport import AsyncPoster, StreamErrorSink

LOG = logging.getLogger(__name__)


@dataclass
class CliContext:
    config_options: Dict[str, Optional[str]] = field(default_factory=dict)
    async_post: bool = False
    max_buffer_size: int = MAX_BUFFER_SIZE


def configure_logger(ctx, param, debug):
    level = logging.CRITICAL

    if debug:
        level = logging.DEBUG

    logging.basicConfig(format="%(asctime)s %(name)s => %(message)s", level=level)


@contextmanager
def open_client(obj: CliContext) -> Iterator[InsightsClient]:
    """
    Build a client from the resolved configuration and flush it on exit.
    """
    config = get_insights_config(**obj.config_options)
    LOG.debug("Resolved configuration: %r", config)

    if not obj.async_post:
        client = InsightsClient.from_config(config, max_buffer_size=obj.max_buffer_size)
        with client:
            yield client
        return

    proxy = config.proxy.as_url() if config.proxy else None
    poster = AsyncPoster(
        http_client=httpx.Client(proxy=proxy),
        error_sink=StreamErrorSink(sys.stderr),
        timeout=config.timeout,
    )
    try:
        client = InsightsClient.from_config(
            config, poster=poster, max_buffer_size=obj.max_buffer_size
        )
        with client:
            yield client
    finally:
        poster.close(wait=True)
        poster.client.close()


def parse_attribute(raw: str) -> Tuple[str, Any]:
    """
    Parse a KEY=VALUE pair; VALUE is read as JSON when it parses, else kept
    as a string.
    """
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise click.BadParameter(f"expected KEY=VALUE, got {raw!r}")

    try:
        return key, json.loads(value)
    except ValueError:
        return key, value


@click.group(help="Buffer events and deliver them to the Insights insert API.")
@click.version_option(version=get_version() or "unknown")
@click.option(
    "--debug",
    default=False,
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=configure_logger,
    help="Enable debug logging.",
)
@click.option("--account-id", default=None, help="Account that receives the events.")
@click.option("--insert-key", default=None, help="Insert key used to authenticate.")
@click.option("--collector-host", default=None, help="Override the collector host.")
@click.option(
    "--async",
    "async_post",
    default=False,
    is_flag=True,
    help="Post batches in the background; failures are reported on stderr.",
)
@click.option(
    "--max-buffer-size",
    default=MAX_BUFFER_SIZE,
    show_default=True,
    type=click.IntRange(min=1),
    help="Uncompressed bytes buffered before a batch is posted.",
)
@click.pass_context
def cli(ctx, account_id, insert_key, collector_host, async_post, max_buffer_size):
    ctx.obj = CliContext(
        config_options={
            "account_id": account_id,
            "insert_key": insert_key,
            "collector_host": collector_host,
        },
        async_post=async_post,
        max_buffer_size=max_buffer_size,
    )


@cli.command()
@click.argument("event_type")
@click.argument("attributes", nargs=-1)
@click.pass_obj
@handle_cmd_exception
def send(obj: CliContext, event_type, attributes):
    """Record a single event and deliver it.

    ATTRIBUTES are KEY=VALUE pairs, e.g. `amount=12.5 sku=abc`.
    """
    record = dict(parse_attribute(raw) for raw in attributes)

    with open_client(obj) as client:
        client.record_event(event_type, record)

    click.secho(f"Sent 1 {event_type} event", fg="green")


@cli.command()
@click.argument("source", type=click.File("r"), default="-")
@click.option(
    "--event-type",
    default=None,
    help=f"Event type for lines without an {EVENT_TYPE_KEY!r} field.",
)
@click.pass_obj
@handle_cmd_exception
def replay(obj: CliContext, source, event_type):
    """Record every JSON object in SOURCE (one per line, default stdin)."""
    count = 0

    with open_client(obj) as client:
        for lineno, line in enumerate(source, start=1):
            line = line.strip()
            if not line:
                continue

            try:
                record = json.loads(line)
            except ValueError as e:
                raise InvalidInputError(f"Line {lineno}: invalid JSON ({e})")

            if not isinstance(record, dict):
                raise InvalidInputError(f"Line {lineno}: expected a JSON object")

            name = record.get(EVENT_TYPE_KEY) or event_type
            if not name:
                raise InvalidInputError(
                    f"Line {lineno}: no {EVENT_TYPE_KEY!r} field and no --event-type"
                )

            client.record_event(name, record)
            count += 1

    click.secho(f"Recorded {count} events", fg="green")
