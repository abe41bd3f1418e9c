from importlib.metadata import PackageNotFoundError, version
import logging
import platform
from typing import Dict, Optional


LOG = logging.getLogger(__name__)

DISTRIBUTION_NAME = "insights-events"


def get_version() -> Optional[str]:
    """
    Get the version of the insights-events package.

    Returns:
      Optional[str]: The version if installed, otherwise None.
    """
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        LOG.debug("Unable to get %s version.", DISTRIBUTION_NAME)
        return None


def get_user_agent() -> str:
    """
    Get the user agent string for HTTP requests.

    Returns:
      str: The user agent string in the format: insights-events/{version} ({os}; Python/{python_version})
    """
    package_version = get_version() or "unknown"
    return (
        f"{DISTRIBUTION_NAME}/{package_version} "
        f"({platform.system()}; Python/{platform.python_version()})"
    )


def get_meta_http_headers() -> Dict[str, str]:
    """
    Get the metadata headers sent with every batch.
    """
    return {"User-Agent": get_user_agent()}
