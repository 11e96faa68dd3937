"""
Platform configuration for gitembed.

Maps a platform identifier (plus an optional custom domain and site-name
override) to the API and web base URLs and the site branding shown on a card.
Self-hosted platforms get their display name from `SiteNameProber`, which
scrapes the instance's page title on a best-effort basis.
"""

import html
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests  # type: ignore[import-untyped]

from gitembed.cache import CacheBackend
from gitembed.constants import (
    CUSTOM_ACCENT_COLOR,
    CUSTOM_FAVICON_PATH,
    CUSTOM_SITE_NAME,
    FORGEJO_ACCENT_COLOR,
    FORGEJO_SITE_NAME,
    GITEA_ACCENT_COLOR,
    GITEA_API_PATH,
    GITEA_FAVICON_PATH,
    GITEA_SITE_NAME,
    GITHUB_ACCENT_COLOR,
    GITHUB_API_BASE,
    GITHUB_FAVICON_URL,
    GITHUB_SITE_NAME,
    GITHUB_WEB_BASE,
    GITLAB_ACCENT_COLOR,
    GITLAB_API_PATH,
    GITLAB_FAVICON_PATH,
    GITLAB_SITE_NAME,
    SITE_NAME_CACHE_PREFIX,
    SITE_NAME_CACHE_TTL,
    SITE_NAME_FALLBACK_CACHE_TTL,
    SITE_PROBE_TIMEOUT,
    SITE_TITLE_MAX_LENGTH,
    SITE_TITLE_PATTERN,
)
from gitembed.exceptions import MissingCustomDomainError, UnsupportedPlatformError
from gitembed.log_utils import logger
from gitembed.models import SiteInfo
from gitembed.utils import hash_key, make_api_request, normalize_domain

_TITLE_RX = re.compile(SITE_TITLE_PATTERN, re.IGNORECASE)


class Platform(str, Enum):
    GITHUB = "github"
    GITEA = "gitea"
    FORGEJO = "forgejo"
    GITLAB = "gitlab"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value) -> "Platform":
        """
        Resolve a platform identifier case-insensitively.

        Raises:
            UnsupportedPlatformError: If `value` is not a known platform.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            raise UnsupportedPlatformError(str(value)) from None

    @property
    def requires_domain(self) -> bool:
        return self is not Platform.GITHUB

    @property
    def is_gitlab_family(self) -> bool:
        return self is Platform.GITLAB

    @property
    def is_self_hosted_gitea_family(self) -> bool:
        """Gitea-API-compatible instances: gitea, forgejo and custom."""
        return self in (Platform.GITEA, Platform.FORGEJO, Platform.CUSTOM)


@dataclass(frozen=True)
class _PlatformBranding:
    fallback_name: str
    api_path: str
    favicon_path: str
    color: str


_SELF_HOSTED_BRANDING = {
    Platform.GITEA: _PlatformBranding(
        GITEA_SITE_NAME, GITEA_API_PATH, GITEA_FAVICON_PATH, GITEA_ACCENT_COLOR
    ),
    Platform.FORGEJO: _PlatformBranding(
        FORGEJO_SITE_NAME, GITEA_API_PATH, GITEA_FAVICON_PATH, FORGEJO_ACCENT_COLOR
    ),
    Platform.GITLAB: _PlatformBranding(
        GITLAB_SITE_NAME, GITLAB_API_PATH, GITLAB_FAVICON_PATH, GITLAB_ACCENT_COLOR
    ),
    Platform.CUSTOM: _PlatformBranding(
        CUSTOM_SITE_NAME, GITEA_API_PATH, CUSTOM_FAVICON_PATH, CUSTOM_ACCENT_COLOR
    ),
}


@dataclass(frozen=True)
class PlatformConfig:
    """Endpoints and site branding for one platform/domain combination."""

    platform: Platform
    api_base_url: str
    web_base_url: str
    site_display_name: str
    site_url: str
    favicon_url: str
    accent_color: str
    domain: Optional[str] = None

    def site_info(self) -> SiteInfo:
        return SiteInfo(
            name=self.site_display_name,
            url=self.site_url,
            favicon=self.favicon_url,
            color=self.accent_color,
        )


def site_name_cache_key(domain: str) -> str:
    return f"{SITE_NAME_CACHE_PREFIX}{hash_key(domain)}"


class SiteNameProber:
    """
    Best-effort lookup of a self-hosted instance's display name from its page title.

    Results are cached per domain: a scraped title for a day, a fallback for an
    hour so transient failures are retried sooner. `probe` never raises.
    """

    def __init__(self, cache: CacheBackend, timeout: float = SITE_PROBE_TIMEOUT):
        self.cache = cache
        self.timeout = timeout

    def probe(self, domain: str, fallback: str) -> str:
        """
        Return the site title for `domain`, or `fallback` when none can be determined.

        Parameters:
            domain (str): Normalized domain (no scheme, no trailing slash).
            fallback (str): Name to use when probing fails.

        Returns:
            str: A non-empty display name.
        """
        cache_key = site_name_cache_key(domain)
        cached = self.cache.get(cache_key)
        if isinstance(cached, str) and cached:
            return cached

        title = self._fetch_title(domain)
        if title:
            self.cache.set(cache_key, title, SITE_NAME_CACHE_TTL)
            return title

        self.cache.set(cache_key, fallback, SITE_NAME_FALLBACK_CACHE_TTL)
        return fallback

    def _fetch_title(self, domain: str) -> Optional[str]:
        url = f"https://{domain}/"
        try:
            response = make_api_request(url, timeout=self.timeout, accept="text/html")
        except requests.RequestException as exc:
            logger.debug(f"Site name probe failed for {url}: {exc}")
            return None

        if response.status_code != 200:
            logger.debug(
                f"Site name probe for {url} returned HTTP {response.status_code}"
            )
            return None

        return extract_site_title(response.text or "")


def extract_site_title(body: str) -> Optional[str]:
    """
    Extract the first <title> from an HTML document.

    Returns:
        The entity-decoded, trimmed title if it is non-empty and shorter than 100 characters, else None.
    """
    match = _TITLE_RX.search(body)
    if not match:
        return None
    title = html.unescape(match.group(1)).strip()
    if title and len(title) < SITE_TITLE_MAX_LENGTH:
        return title
    return None


def get_platform_config(
    platform,
    custom_domain: Optional[str] = None,
    custom_site_name: Optional[str] = None,
    site_name_prober: Optional[SiteNameProber] = None,
) -> PlatformConfig:
    """
    Build the configuration for a platform.

    The display name for self-hosted platforms is resolved in order: the explicit
    `custom_site_name`, the probed page title (only when a prober is supplied),
    then the platform's hardcoded fallback name.

    Parameters:
        platform (Platform | str): Platform identifier.
        custom_domain (Optional[str]): Host of a self-hosted instance; required for every platform but GitHub.
        custom_site_name (Optional[str]): Display-name override.
        site_name_prober (Optional[SiteNameProber]): Used to look up the site title when no override is given.

    Returns:
        PlatformConfig: Immutable configuration for the request.

    Raises:
        UnsupportedPlatformError: If the platform is unknown.
        MissingCustomDomainError: If a self-hosted platform is requested without a domain.
    """
    platform = Platform.parse(platform)

    if platform is Platform.GITHUB:
        return PlatformConfig(
            platform=platform,
            api_base_url=GITHUB_API_BASE,
            web_base_url=GITHUB_WEB_BASE,
            site_display_name=GITHUB_SITE_NAME,
            site_url=GITHUB_WEB_BASE,
            favicon_url=GITHUB_FAVICON_URL,
            accent_color=GITHUB_ACCENT_COLOR,
        )

    domain = normalize_domain(custom_domain)
    if not domain:
        raise MissingCustomDomainError(platform.value)

    branding = _SELF_HOSTED_BRANDING[platform]
    site_name = (custom_site_name or "").strip()
    if not site_name:
        if site_name_prober is not None:
            site_name = site_name_prober.probe(domain, branding.fallback_name)
        else:
            site_name = branding.fallback_name

    web_base_url = f"https://{domain}"
    return PlatformConfig(
        platform=platform,
        api_base_url=f"{web_base_url}{branding.api_path}",
        web_base_url=web_base_url,
        site_display_name=site_name,
        site_url=web_base_url,
        favicon_url=f"{web_base_url}{branding.favicon_path}",
        accent_color=branding.color,
        domain=domain,
    )
