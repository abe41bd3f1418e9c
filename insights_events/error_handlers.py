import logging
import sys
from functools import wraps

import click

from insights_events.constants import EXIT_CODE_FAILURE
from insights_events.errors import InsightsError


LOG = logging.getLogger(__name__)


def output_exception(exception: Exception) -> None:
    """
    Output an exception message to stderr and exit with its exit code.
    """
    click.secho(str(exception), fg="red", file=sys.stderr)

    exit_code = EXIT_CODE_FAILURE
    if hasattr(exception, "get_exit_code"):
        exit_code = exception.get_exit_code()

    sys.exit(exit_code)


def handle_cmd_exception(func):
    """
    Decorator turning library errors raised by a command into a clean exit.
    """

    @wraps(func)
    def inner(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.ClickException:
            raise
        except InsightsError as e:
            LOG.exception("Expected InsightsError happened: %s", e)
            output_exception(e)

    return inner
