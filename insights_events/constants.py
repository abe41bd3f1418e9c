# -*- coding: utf-8 -*-
from pathlib import Path

# The insert API rejects payloads above 1MB, keep clear of it
MAX_BUFFER_SIZE = 950000

REQUEST_TIMEOUT = 30

EVENT_TYPE_KEY = "eventType"

DEFAULT_COLLECTOR_HOST = "insights-collector.newrelic.com"
EVENTS_ENDPOINT = "https://{host}/v1/accounts/{account_id}/events"

COMPRESSION_CHUNK_SIZE = 64 * 1024

INSERT_KEY_HEADER = "X-Insert-Key"

ENV_ACCOUNT_ID = "INSIGHTS_ACCOUNT_ID"
ENV_INSERT_KEY = "INSIGHTS_INSERT_KEY"
ENV_COLLECTOR_HOST = "INSIGHTS_COLLECTOR_HOST"

DIR_NAME = ".insights"


def get_user_dir() -> Path:
    """
    Get the user directory for the insights configuration.

    Returns:
        Path: The user directory path.
    """
    return Path("~", DIR_NAME).expanduser()


USER_CONFIG_DIR = get_user_dir()
CONFIG_FILE_NAME = "config.ini"
CONFIG = USER_CONFIG_DIR / CONFIG_FILE_NAME

# Exit codes
EXIT_CODE_OK = 0
EXIT_CODE_FAILURE = 1
EXIT_CODE_INVALID_INPUT = 2
EXIT_CODE_INVALID_CONFIGURATION = 3
EXIT_CODE_TRANSPORT_ERROR = 4
EXIT_CODE_REMOTE_REJECTED = 5
