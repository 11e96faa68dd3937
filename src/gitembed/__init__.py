from gitembed.cache import CacheBackend, FileCache, InMemoryCache
from gitembed.models import CanonicalRepository, DownloadInfo, OwnerInfo, SiteInfo
from gitembed.platforms import Platform, PlatformConfig, get_platform_config
from gitembed.resolver import (
    FetchRequest,
    FetchResponse,
    RepositoryResolver,
    handle_clear_cache_request,
    handle_fetch_request,
)

__all__ = [
    "CacheBackend",
    "CanonicalRepository",
    "DownloadInfo",
    "FetchRequest",
    "FetchResponse",
    "FileCache",
    "InMemoryCache",
    "OwnerInfo",
    "Platform",
    "PlatformConfig",
    "RepositoryResolver",
    "SiteInfo",
    "get_platform_config",
    "handle_clear_cache_request",
    "handle_fetch_request",
]
