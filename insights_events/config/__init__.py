from .main import (
    InsightsConfig,
    ProxyEndpoint,
    get_insights_config,
    get_proxy_config,
)

__all__ = [
    "InsightsConfig",
    "ProxyEndpoint",
    "get_insights_config",
    "get_proxy_config",
]
