"""
Repository Metadata Resolver

Ties the pipeline together behind a read-through cache:

    cache lookup -> platform config -> repository fetch -> normalize
    -> release/branch resolution -> archive URL -> cache store -> avatar pre-warm

Only the primary repository-metadata fetch can fail the whole operation. Every
other network step (site-name probe, release and branch lookups, avatar
pre-warm) degrades to a fallback and never raises.
"""

import dataclasses
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import requests  # type: ignore[import-untyped]

from gitembed.archive import build_download_info
from gitembed.cache import CacheBackend
from gitembed.constants import (
    API_REQUEST_TIMEOUT,
    AVATAR_CACHE_PREFIX,
    AVATAR_CACHE_TTL,
    AVATAR_REQUEST_TIMEOUT,
    CACHE_KEY_PREFIX,
    MSG_CACHE_CLEARED,
    REPOSITORY_CACHE_TTL,
    SITE_PROBE_TIMEOUT,
)
from gitembed.exceptions import (
    GitEmbedError,
    MissingCustomDomainError,
    MissingRepositoryIdentityError,
    UnsupportedPlatformError,
    UpstreamMalformedError,
    UpstreamUnavailableError,
)
from gitembed.log_utils import logger
from gitembed.models import DOWNLOAD_KIND_BRANCH, CanonicalRepository
from gitembed.normalizer import normalize_repository
from gitembed.platforms import (
    Platform,
    PlatformConfig,
    SiteNameProber,
    get_platform_config,
    site_name_cache_key,
)
from gitembed.releases import repository_api_url, resolve_download_ref
from gitembed.utils import hash_key, make_api_request, normalize_domain


def build_cache_key(
    platform: str,
    owner: str,
    repo: str,
    custom_domain: str = "",
    custom_site_name: str = "",
) -> str:
    """
    Build the cache key for a repository record.

    The key includes `custom_site_name`, so changing only the display-name
    override yields a separate entry for the same repository.
    """
    key = f"{CACHE_KEY_PREFIX}{platform}_{owner}_{repo}"
    if custom_domain:
        key += f"_{custom_domain}"
    if custom_site_name:
        key += f"_{custom_site_name}"
    return key


def avatar_cache_key(avatar_url: str) -> str:
    return f"{AVATAR_CACHE_PREFIX}{hash_key(avatar_url)}"


class RepositoryResolver:
    """
    Resolves `(platform, owner, repo, custom_domain, custom_site_name)` into a
    `CanonicalRepository`, caching the result for a day.

    Concurrent misses for the same key may both hit upstream; the last write wins.
    """

    def __init__(
        self,
        cache: CacheBackend,
        api_timeout: float = API_REQUEST_TIMEOUT,
        probe_timeout: float = SITE_PROBE_TIMEOUT,
        avatar_timeout: float = AVATAR_REQUEST_TIMEOUT,
    ):
        """
        Parameters:
            cache (CacheBackend): Key/value store shared by records, site names and avatar markers.
            api_timeout (float): Timeout for repository, release and branch requests.
            probe_timeout (float): Timeout for the site title probe.
            avatar_timeout (float): Timeout for the avatar pre-warm request.
        """
        self.cache = cache
        self.api_timeout = api_timeout
        self.avatar_timeout = avatar_timeout
        self.site_name_prober = SiteNameProber(cache, timeout=probe_timeout)

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def fetch_repository(
        self,
        platform: str,
        owner: str,
        repo: str,
        custom_domain: str = "",
        custom_site_name: str = "",
    ) -> Optional[CanonicalRepository]:
        """
        Return the canonical record for a repository, or None if it cannot be resolved.

        Failure details are logged at debug level only.
        """
        try:
            return self.resolve_repository(
                platform, owner, repo, custom_domain, custom_site_name
            )
        except GitEmbedError as exc:
            logger.debug(f"Could not resolve {platform}:{owner}/{repo}: {exc}")
            return None

    def resolve_repository(
        self,
        platform: str,
        owner: str,
        repo: str,
        custom_domain: str = "",
        custom_site_name: str = "",
    ) -> CanonicalRepository:
        """
        Return the canonical record for a repository, raising on terminal failures.

        On a cache hit the stored record is returned as-is. On a miss the full
        pipeline runs and the result is cached for REPOSITORY_CACHE_TTL.

        Raises:
            MissingRepositoryIdentityError: If `owner` or `repo` is empty.
            MissingCustomDomainError: If a self-hosted platform has no domain.
            UnsupportedPlatformError: If the platform is unknown.
            UpstreamUnavailableError: On a transport error or non-200 repository response.
            UpstreamMalformedError: If the repository response is not usable JSON.
        """
        owner = (owner or "").strip()
        repo = (repo or "").strip()
        custom_domain = (custom_domain or "").strip()
        custom_site_name = (custom_site_name or "").strip()
        if not owner or not repo:
            raise MissingRepositoryIdentityError()

        parsed_platform = Platform.parse(platform)
        if parsed_platform.requires_domain and not normalize_domain(custom_domain):
            raise MissingCustomDomainError(parsed_platform.value)

        cache_key = build_cache_key(
            parsed_platform.value, owner, repo, custom_domain, custom_site_name
        )
        cached = self._read_cached_record(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {cache_key}")
            return cached

        config = get_platform_config(
            parsed_platform,
            custom_domain,
            custom_site_name,
            site_name_prober=self.site_name_prober,
        )
        raw = self._fetch_repository_payload(config, owner, repo)
        record = normalize_repository(raw, parsed_platform, config, owner)

        download_ref = resolve_download_ref(
            config,
            owner,
            repo,
            default_branch=record.default_branch,
            timeout=self.api_timeout,
        )
        record = dataclasses.replace(
            record,
            default_branch=(
                download_ref.ref
                if download_ref.kind == DOWNLOAD_KIND_BRANCH
                else record.default_branch
            ),
            download_info=build_download_info(
                parsed_platform, config, owner, repo, download_ref
            ),
        )

        self.cache.set(cache_key, record.to_dict(), REPOSITORY_CACHE_TTL)
        logger.debug(f"Cached {cache_key} for {REPOSITORY_CACHE_TTL}s")

        self.prewarm_avatar(record.avatar_url)
        return record

    def _read_cached_record(self, cache_key: str) -> Optional[CanonicalRepository]:
        cached = self.cache.get(cache_key)
        if cached is None:
            return None
        if isinstance(cached, CanonicalRepository):
            return cached
        try:
            return CanonicalRepository.from_dict(cached)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning(f"Discarding malformed cache entry {cache_key}: {exc}")
            self.cache.delete(cache_key)
            return None

    def _fetch_repository_payload(
        self, config: PlatformConfig, owner: str, repo: str
    ) -> Any:
        url = repository_api_url(config, owner, repo)
        try:
            response = make_api_request(url, timeout=self.api_timeout)
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise UpstreamUnavailableError(
                "Repository request failed", url=url, status_code=status, details=str(exc)
            ) from exc
        except requests.RequestException as exc:
            raise UpstreamUnavailableError(
                "Repository request failed", url=url, details=str(exc)
            ) from exc

        if response.status_code != 200:
            raise UpstreamUnavailableError(
                "Repository request returned an unexpected status",
                url=url,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except (ValueError, json.JSONDecodeError) as exc:
            raise UpstreamMalformedError(
                "Repository response is not valid JSON", url=url, details=str(exc)
            ) from exc

        if not data:
            raise UpstreamMalformedError("Repository response is empty", url=url)
        return data

    def prewarm_avatar(self, avatar_url: Optional[str]) -> bool:
        """
        Record that an avatar URL is reachable, for a week.

        Skipped when the marker already exists. Any failure is swallowed.

        Returns:
            bool: True if a marker exists after the call.
        """
        if not avatar_url:
            return False

        cache_key = avatar_cache_key(avatar_url)
        if self.cache.get(cache_key) is not None:
            return True

        try:
            response = make_api_request(
                avatar_url, timeout=self.avatar_timeout, accept="image/*"
            )
        except requests.RequestException as exc:
            logger.debug(f"Avatar pre-warm failed for {avatar_url}: {exc}")
            return False

        if response.status_code != 200:
            return False
        self.cache.set(cache_key, True, AVATAR_CACHE_TTL)
        return True

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def clear_repository_cache(
        self,
        platform: str,
        owner: str,
        repo: str,
        custom_domain: str = "",
        custom_site_name: str = "",
    ) -> None:
        """
        Clear one repository's record plus every avatar marker.

        The site-name probe entry for `custom_domain` is removed as well when a
        domain is given.
        """
        custom_domain = (custom_domain or "").strip()
        try:
            platform_value = Platform.parse(platform).value
        except UnsupportedPlatformError:
            platform_value = str(platform or "").strip().lower()
        cache_key = build_cache_key(
            platform_value,
            (owner or "").strip(),
            (repo or "").strip(),
            custom_domain,
            (custom_site_name or "").strip(),
        )
        self.cache.delete(cache_key)
        removed = self.cache.delete_by_prefix(AVATAR_CACHE_PREFIX)
        logger.debug(f"Cleared {cache_key} and {removed} avatar entries")

        domain = normalize_domain(custom_domain)
        if domain:
            self.cache.delete(site_name_cache_key(domain))

    def clear_all_cache(self) -> int:
        """Remove every entry under the gitembed key prefix. Returns the number removed."""
        removed = self.cache.delete_by_prefix(CACHE_KEY_PREFIX)
        logger.info(f"Cleared {removed} cached entries")
        return removed


# ----------------------------------------------------------------------
# Request handling
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class FetchRequest:
    """Inbound parameters from the web-facing layer."""

    platform: str = "github"
    owner: str = ""
    repo: str = ""
    custom_domain: str = ""
    custom_site_name: str = ""

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "FetchRequest":
        """Build a request from form or JSON fields (camelCase names accepted)."""

        def _field(*names: str, default: str = "") -> str:
            for name in names:
                value = data.get(name)
                if value is not None:
                    return str(value).strip()
            return default

        return cls(
            platform=_field("platform", default="github") or "github",
            owner=_field("owner"),
            repo=_field("repo"),
            custom_domain=_field("custom_domain", "customDomain"),
            custom_site_name=_field("custom_site_name", "customSiteName"),
        )


@dataclass(frozen=True)
class FetchResponse:
    """JSON-style envelope: `data` is the record dict on success, a message on failure."""

    success: bool
    data: Union[Dict[str, Any], str]

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "data": self.data}


def handle_fetch_request(
    resolver: RepositoryResolver, request: FetchRequest
) -> FetchResponse:
    """
    Resolve a request into a response envelope.

    Only the user-facing message of an error is returned; details stay in the
    debug log.
    """
    try:
        record = resolver.resolve_repository(
            request.platform,
            request.owner,
            request.repo,
            request.custom_domain,
            request.custom_site_name,
        )
    except GitEmbedError as exc:
        logger.debug(f"Fetch request failed: {exc}")
        return FetchResponse(success=False, data=exc.user_message)
    return FetchResponse(success=True, data=record.to_dict())


def handle_clear_cache_request(
    resolver: RepositoryResolver, request: FetchRequest
) -> FetchResponse:
    if not request.owner or not request.repo:
        return FetchResponse(
            success=False, data=MissingRepositoryIdentityError().user_message
        )
    resolver.clear_repository_cache(
        request.platform,
        request.owner,
        request.repo,
        request.custom_domain,
        request.custom_site_name,
    )
    return FetchResponse(success=True, data=MSG_CACHE_CLEARED)
