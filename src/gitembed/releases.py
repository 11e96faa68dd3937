"""
Default Branch / Release Resolver

Chooses the ref an archive download should point at. A published release is
preferred because it is an immutable, versioned artifact; otherwise the
repository's default branch is used, probing the branch list when the
repository payload did not name one. Lookup failures at this stage are never
fatal: each one just moves resolution on to the next fallback.
"""

import json
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests  # type: ignore[import-untyped]

from gitembed.constants import (
    API_REQUEST_TIMEOUT,
    BRANCH_DISPLAY_NAME,
    FALLBACK_BRANCH_NAME,
    PREFERRED_BRANCH_NAMES,
)
from gitembed.log_utils import logger
from gitembed.models import DOWNLOAD_KIND_BRANCH, DOWNLOAD_KIND_RELEASE, DownloadRef
from gitembed.platforms import Platform, PlatformConfig
from gitembed.utils import make_api_request


def gitlab_project_id(owner: str, repo: str) -> str:
    """URL-encode `owner/repo` as the single path segment GitLab expects for a project id."""
    return quote(f"{owner}/{repo}", safe="")


def repository_api_url(config: PlatformConfig, owner: str, repo: str) -> str:
    """Return the repository-metadata endpoint for the configured platform."""
    if config.platform.is_gitlab_family:
        return f"{config.api_base_url}/projects/{gitlab_project_id(owner, repo)}"
    return f"{config.api_base_url}/repos/{owner}/{repo}"


def _latest_release_url(config: PlatformConfig, owner: str, repo: str) -> str:
    if config.platform.is_gitlab_family:
        return f"{repository_api_url(config, owner, repo)}/releases"
    return f"{repository_api_url(config, owner, repo)}/releases/latest"


def _branches_url(config: PlatformConfig, owner: str, repo: str) -> str:
    if config.platform.is_gitlab_family:
        return f"{repository_api_url(config, owner, repo)}/repository/branches"
    return f"{repository_api_url(config, owner, repo)}/branches"


def _get_json(url: str, timeout: float) -> Any:
    """
    GET `url` and decode its JSON body, returning None on any failure.

    A 404 is the normal answer for a repository without releases, so it is only
    logged at debug level like every other failure here.
    """
    try:
        response = make_api_request(url, timeout=timeout)
        if response.status_code != 200:
            logger.debug(f"Ignoring HTTP {response.status_code} from {url}")
            return None
        return response.json()
    except requests.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else "unknown"
        logger.debug(f"No data from {url} (HTTP {status})")
    except (requests.RequestException, ValueError, json.JSONDecodeError) as exc:
        logger.debug(f"Lookup of {url} failed: {exc}")
    return None


def fetch_latest_release(
    config: PlatformConfig,
    owner: str,
    repo: str,
    timeout: float = API_REQUEST_TIMEOUT,
) -> Optional[Dict[str, Any]]:
    """
    Fetch the most recent release of a repository.

    GitHub-like platforms expose `/releases/latest`; GitLab returns a list from
    `/releases` whose first element is the newest.

    Returns:
        Optional[Dict[str, Any]]: Raw release object, or None if there is none or the lookup failed.
    """
    data = _get_json(_latest_release_url(config, owner, repo), timeout)
    if config.platform.is_gitlab_family:
        if isinstance(data, list) and data:
            data = data[0]
        else:
            return None
    return data if isinstance(data, dict) else None


def fetch_branch_names(
    config: PlatformConfig,
    owner: str,
    repo: str,
    timeout: float = API_REQUEST_TIMEOUT,
) -> List[str]:
    """
    List branch names in the order the API returns them.

    Returns:
        List[str]: Branch names; empty on failure or malformed data.
    """
    data = _get_json(_branches_url(config, owner, repo), timeout)
    if not isinstance(data, list):
        return []
    names = []
    for entry in data:
        name = entry.get("name") if isinstance(entry, dict) else None
        if isinstance(name, str) and name:
            names.append(name)
    return names


def pick_branch(branch_names: List[str]) -> str:
    """Prefer `main`, then `master`, then the first branch listed, else `main`."""
    for preferred in PREFERRED_BRANCH_NAMES:
        if preferred in branch_names:
            return preferred
    if branch_names:
        return branch_names[0]
    return FALLBACK_BRANCH_NAME


def release_to_download_ref(release: Optional[Dict[str, Any]]) -> Optional[DownloadRef]:
    """Convert a raw release into a download ref, or None for drafts and untagged entries."""
    if not release or release.get("draft"):
        return None
    tag_name = release.get("tag_name")
    if not isinstance(tag_name, str) or not tag_name.strip():
        return None
    name = release.get("name")
    display_name = name if isinstance(name, str) and name.strip() else tag_name
    return DownloadRef(kind=DOWNLOAD_KIND_RELEASE, ref=tag_name, display_name=display_name)


def resolve_download_ref(
    config: PlatformConfig,
    owner: str,
    repo: str,
    platform=None,
    default_branch: Optional[str] = None,
    timeout: float = API_REQUEST_TIMEOUT,
) -> DownloadRef:
    """
    Determine the most appropriate download reference for a repository.

    Order of preference:
    1. The latest non-draft release (`kind="release"`, ref is the tag).
    2. `default_branch` when already known from the repository payload (no network call).
    3. A probed branch list: `main`, `master`, the first listed, or finally `main`.

    Parameters:
        config (PlatformConfig): Platform endpoints.
        owner (str): Repository owner as requested.
        repo (str): Repository name as requested.
        platform (Platform | str | None): Defaults to `config.platform`.
        default_branch (Optional[str]): Default branch reported by the repository payload.
        timeout (float): Timeout for each outbound request.

    Returns:
        DownloadRef: Always a usable ref; this function does not raise for lookup failures.
    """
    if platform is not None and Platform.parse(platform) is not config.platform:
        raise ValueError(
            f"Platform {platform!r} does not match config for {config.platform.value}"
        )

    release_ref = release_to_download_ref(
        fetch_latest_release(config, owner, repo, timeout=timeout)
    )
    if release_ref is not None:
        logger.debug(f"Using release {release_ref.ref} for {owner}/{repo}")
        return release_ref

    branch = default_branch
    if not branch:
        branch = pick_branch(fetch_branch_names(config, owner, repo, timeout=timeout))
    logger.debug(f"Using branch {branch} for {owner}/{repo}")
    return DownloadRef(kind=DOWNLOAD_KIND_BRANCH, ref=branch, display_name=BRANCH_DISPLAY_NAME)
