import hashlib
import importlib.metadata
import re
from typing import Any, Dict, Optional

import requests  # type: ignore[import-untyped]

from gitembed.constants import API_REQUEST_TIMEOUT
from gitembed.log_utils import logger

_USER_AGENT_CACHE = None

_SCHEME_RX = re.compile(r"^https?://", re.IGNORECASE)


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `gitembed/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version("gitembed")
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"gitembed/{app_version}"

    return _USER_AGENT_CACHE


def normalize_domain(domain: Optional[str]) -> str:
    """
    Strip whitespace, a leading http:// or https:// scheme and trailing slashes from a domain.

    Parameters:
        domain (Optional[str]): User-supplied domain, possibly a full URL.

    Returns:
        str: Bare host (with optional path), or an empty string for empty input.
    """
    if not domain:
        return ""
    normalized = _SCHEME_RX.sub("", domain.strip())
    return normalized.rstrip("/")


def hash_key(value: str) -> str:
    """Return the hex md5 digest of `value`, used to build fixed-width cache keys."""
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def make_api_request(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = None,
    accept: str = "application/json",
) -> requests.Response:
    """
    Perform an unauthenticated GET against an upstream Git hosting API.

    Parameters:
        url (str): API URL to request.
        params (Optional[Dict[str, Any]]): Query parameters to include in the request.
        timeout (Optional[float]): Request timeout in seconds; if omitted the module default is used.
        accept (str): Value for the Accept header.

    Returns:
        requests.Response: The HTTP response, guaranteed to have a 2xx status.

    Raises:
        requests.HTTPError: For HTTP error responses.
        requests.RequestException: For lower-level network or request errors.
    """
    headers = {
        "Accept": accept,
        "User-Agent": get_user_agent(),
    }
    actual_timeout = timeout or API_REQUEST_TIMEOUT
    logger.debug(f"Making API request: {url}")
    response = requests.get(url, timeout=actual_timeout, headers=headers, params=params)
    response.raise_for_status()
    return response
