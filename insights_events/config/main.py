import configparser
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, NamedTuple, Optional, Tuple

from insights_events.constants import (
    CONFIG,
    DEFAULT_COLLECTOR_HOST,
    ENV_ACCOUNT_ID,
    ENV_COLLECTOR_HOST,
    ENV_INSERT_KEY,
    EVENTS_ENDPOINT,
    REQUEST_TIMEOUT,
)
from insights_events.errors import ConfigurationError
from .log_codes import (
    INSIGHTS_CONFIG_MISSING_SECTION,
    INSIGHTS_MISSING_VALUE,
    INSIGHTS_RESOLVED,
    PROXY_NOT_DEFINED,
    PROXY_PROTOCOL_INVALID,
    PROXY_RESOLVED,
)

logger = logging.getLogger(__name__)


INSIGHTS_SECTION_NAME = "insights"
PROXY_SECTION_NAME = "proxy"

ACCOUNT_ID_KEY = "account_id"
INSERT_KEY_KEY = "insert_key"
COLLECTOR_HOST_KEY = "collector_host"

DEFAULT_PROXY_PORT: int = 80
DEFAULT_PROXY_SCHEME: str = "http"
PROXY_ALLOWED_PROTOCOLS = ("http", "https")


class ProxyEndpoint(NamedTuple):
    scheme: str
    host: str
    port: int

    def as_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"


@dataclass(frozen=True)
class InsightsConfig:
    account_id: str
    insert_key: str
    collector_host: str = DEFAULT_COLLECTOR_HOST
    timeout: float = REQUEST_TIMEOUT
    proxy: Optional[ProxyEndpoint] = None

    @property
    def events_url(self) -> str:
        return EVENTS_ENDPOINT.format(
            host=self.collector_host, account_id=self.account_id
        )

    def __repr__(self) -> str:
        # Never leak the insert key into logs
        return (
            f"InsightsConfig(account_id={self.account_id!r}, "
            f"collector_host={self.collector_host!r}, timeout={self.timeout!r})"
        )


def _read_section(config_path: Path, section_name: str) -> Optional[Dict[str, str]]:
    config = configparser.ConfigParser()
    config_files = config.read(filenames=[config_path])

    if not config_files or not config.has_section(section_name):
        if config_files:
            logger.debug(
                INSIGHTS_CONFIG_MISSING_SECTION,
                extra={"config_path": str(config_path), "section": section_name},
            )
        return None

    return dict(config[section_name])


def _first_value(
    name: str, cli_value: Optional[str], env_name: str, section: Dict[str, str]
) -> Tuple[Optional[str], Optional[str]]:
    """
    Pick the first non-empty value for a setting.

    Resolution order: CLI argument, environment variable, config.ini.

    Returns:
        tuple: (value, source) or (None, None) if no source defines it.
    """
    candidates = [
        ("cli", cli_value),
        ("env", os.environ.get(env_name)),
        ("config", section.get(name)),
    ]
    for source, value in candidates:
        if value is not None and str(value).strip():
            return str(value).strip(), source
    return None, None


def _missing_setting(name: str, env_name: str, config_path: Path) -> ConfigurationError:
    logger.error(INSIGHTS_MISSING_VALUE, extra={"setting": name})
    return ConfigurationError(
        f"Missing {name}: pass it explicitly, set {env_name} or add it to "
        f"the [{INSIGHTS_SECTION_NAME}] section of {config_path}"
    )


def get_proxy_config(config_path: Optional[Path] = None) -> Optional[ProxyEndpoint]:
    """
    Read the optional proxy used by the default HTTP client.

    Args:
        config_path (Optional[Path]): The config.ini file, defaults to ~/.insights/config.ini.

    Returns:
        Optional[ProxyEndpoint]: The proxy endpoint, or None if not configured.

    Raises:
        ConfigurationError: If the proxy section is invalid.
    """
    config_path = config_path or CONFIG
    section = _read_section(config_path, PROXY_SECTION_NAME) or {}
    host = section.get("host", "").strip()

    if not host:
        logger.debug(PROXY_NOT_DEFINED, extra={"config_path": str(config_path)})
        return None

    scheme = section.get("protocol", DEFAULT_PROXY_SCHEME).lower()
    if scheme not in PROXY_ALLOWED_PROTOCOLS:
        logger.error(PROXY_PROTOCOL_INVALID, extra={"protocol": scheme})
        raise ConfigurationError(f"Invalid proxy protocol: {scheme!r}")

    try:
        port = int(section.get("port", DEFAULT_PROXY_PORT))
    except ValueError:
        raise ConfigurationError("Proxy port must be an integer")

    endpoint = ProxyEndpoint(scheme=scheme, host=host, port=port)
    logger.info(PROXY_RESOLVED, extra={"proxy": endpoint.as_url()})
    return endpoint


def get_insights_config(
    account_id: Optional[str] = None,
    insert_key: Optional[str] = None,
    collector_host: Optional[str] = None,
    timeout: float = REQUEST_TIMEOUT,
    config_path: Optional[Path] = None,
) -> InsightsConfig:
    """
    Resolve the effective client configuration.

    Each setting is resolved independently, first non-empty wins:
      1. Explicit arguments (command-line options)
      2. Environment variables
      3. The [insights] section of config.ini

    Args:
        account_id (Optional[str]): The account identifier.
        insert_key (Optional[str]): The insert key used to authenticate.
        collector_host (Optional[str]): Override for the collector host.
        timeout (float): Timeout applied to each request.
        config_path (Optional[Path]): The config.ini file, defaults to ~/.insights/config.ini.

    Returns:
        InsightsConfig: The resolved configuration.

    Raises:
        ConfigurationError: If the account id or insert key are missing.
    """
    config_path = config_path or CONFIG
    section = _read_section(config_path, INSIGHTS_SECTION_NAME) or {}

    resolved_account, account_source = _first_value(
        ACCOUNT_ID_KEY, account_id, ENV_ACCOUNT_ID, section
    )
    resolved_key, key_source = _first_value(
        INSERT_KEY_KEY, insert_key, ENV_INSERT_KEY, section
    )
    resolved_host, _ = _first_value(
        COLLECTOR_HOST_KEY, collector_host, ENV_COLLECTOR_HOST, section
    )

    if resolved_account is None:
        raise _missing_setting(ACCOUNT_ID_KEY, ENV_ACCOUNT_ID, config_path)
    if resolved_key is None:
        raise _missing_setting(INSERT_KEY_KEY, ENV_INSERT_KEY, config_path)

    config = InsightsConfig(
        account_id=resolved_account,
        insert_key=resolved_key,
        collector_host=resolved_host or DEFAULT_COLLECTOR_HOST,
        timeout=timeout,
        proxy=get_proxy_config(config_path),
    )
    logger.info(
        INSIGHTS_RESOLVED,
        extra={
            "account_source": account_source,
            "key_source": key_source,
            "collector_host": config.collector_host,
        },
    )
    return config
