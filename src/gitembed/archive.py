"""
Archive URL Builder

Builds the platform-specific zip archive URL for a ref and the filename a
browser should save it under.
"""

import re

from gitembed.constants import ARCHIVE_EXTENSION, REF_PREFIXES
from gitembed.models import DownloadInfo, DownloadRef
from gitembed.platforms import Platform, PlatformConfig

_UNSAFE_FILENAME_CHARS_RX = re.compile(r"[^A-Za-z0-9\-_.]")
_RELEASE_VERSION_PREFIX_RX = re.compile(r"^v(?=\d)")


def strip_ref_prefix(ref: str) -> str:
    for prefix in REF_PREFIXES:
        if ref.startswith(prefix):
            return ref[len(prefix):]
    return ref


def sanitize_filename_part(value: str) -> str:
    return _UNSAFE_FILENAME_CHARS_RX.sub("-", value)


def build_archive_url(
    platform,
    config: PlatformConfig,
    owner: str,
    repo: str,
    ref: str,
    is_release: bool,
) -> str:
    """
    Build the downloadable zip archive URL for `ref`.

    - GitHub: ``https://github.com/{owner}/{repo}/archive/refs/{tags|heads}/{ref}.zip``
    - GitLab: ``{web_base_url}/{owner}/{repo}/-/archive/{ref}/{repo}-{ref}.zip``
    - Gitea, Forgejo, custom: ``{api_base_url}/repos/{owner}/{repo}/archive/{ref}.zip``

    Returns:
        str: A fully-qualified https URL, or an empty string when no URL can be built.
    """
    platform = Platform.parse(platform)
    ref = strip_ref_prefix(ref or "")
    if not ref or not owner or not repo:
        return ""

    if platform is Platform.GITHUB:
        kind = "tags" if is_release else "heads"
        url = f"{config.web_base_url}/{owner}/{repo}/archive/refs/{kind}/{ref}{ARCHIVE_EXTENSION}"
    elif platform is Platform.GITLAB:
        url = f"{config.web_base_url}/{owner}/{repo}/-/archive/{ref}/{repo}-{ref}{ARCHIVE_EXTENSION}"
    else:
        url = f"{config.api_base_url}/repos/{owner}/{repo}/archive/{ref}{ARCHIVE_EXTENSION}"

    return url if url.startswith("https://") else ""


def build_archive_filename(repo: str, ref: str, is_release: bool) -> str:
    """
    Build a safe archive filename such as ``myrepo-1.2.0.zip``.

    `refs/heads/` and `refs/tags/` prefixes are dropped, a leading ``v`` before a
    version number is removed for releases, and any character outside
    ``[A-Za-z0-9-_.]`` is replaced by ``-``.
    """
    ref = strip_ref_prefix(ref or "")
    if is_release:
        ref = _RELEASE_VERSION_PREFIX_RX.sub("", ref)
    return f"{sanitize_filename_part(repo)}-{sanitize_filename_part(ref)}{ARCHIVE_EXTENSION}"


def build_download_info(
    platform,
    config: PlatformConfig,
    owner: str,
    repo: str,
    download_ref: DownloadRef,
) -> DownloadInfo:
    is_release = download_ref.is_release
    return DownloadInfo(
        kind=download_ref.kind,
        ref=download_ref.ref,
        display_name=download_ref.display_name,
        url=build_archive_url(platform, config, owner, repo, download_ref.ref, is_release),
        filename=build_archive_filename(repo, download_ref.ref, is_release),
    )
