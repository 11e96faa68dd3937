"""
Repository Data Normalizer

Converts a raw repository payload from an upstream API into a
`CanonicalRepository`. Upstream shapes come in two families:

- GitLab: `path_with_namespace`, `star_count`, `web_url`, `http_url_to_repo`,
  ownership described by `namespace` (and sometimes `owner`).
- GitHub-like: GitHub itself plus the Gitea-API-compatible platforms (Gitea,
  Forgejo, custom), which use `full_name`, `owner.login` and one of two field
  names per counter (`stargazers_count` on GitHub, `stars_count` on Gitea).

All field-presence branching lives in this module.
"""

from typing import Any, Callable, Dict, Mapping, Optional

from gitembed.constants import (
    ORGANIZATION_OWNER_ALIASES,
    OWNER_TYPE_ORGANIZATION,
    OWNER_TYPE_USER,
)
from gitembed.exceptions import UpstreamMalformedError
from gitembed.models import CanonicalRepository, OwnerInfo
from gitembed.platforms import Platform, PlatformConfig


def normalize_owner_type(value: Any, platform) -> str:
    """
    Map an upstream owner/namespace type onto 'User' or 'Organization'.

    organization/org/group/team (any case) become Organization; every other
    present value becomes User. When the upstream field is absent, Gitea,
    Forgejo and custom instances default to Organization while GitHub and
    GitLab default to User.

    Parameters:
        value (Any): Raw upstream value, or None when the field was missing.
        platform (Platform | str): Platform the payload came from.

    Returns:
        str: `OWNER_TYPE_ORGANIZATION` or `OWNER_TYPE_USER`.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if Platform.parse(platform).is_self_hosted_gitea_family:
            return OWNER_TYPE_ORGANIZATION
        return OWNER_TYPE_USER

    if str(value).strip().lower() in ORGANIZATION_OWNER_ALIASES:
        return OWNER_TYPE_ORGANIZATION
    return OWNER_TYPE_USER


def _as_count(*values: Any) -> int:
    """Return the first value that parses as a non-negative integer, else 0."""
    for value in values:
        if value is None or isinstance(value, bool):
            continue
        try:
            count = int(value)
        except (TypeError, ValueError):
            continue
        if count >= 0:
            return count
    return 0


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _join_full_name(owner: str, name: str) -> str:
    return f"{owner.strip('/')}/{name.strip('/')}"


def _full_name(candidate: Any, owner_login: str, name: str) -> str:
    """Use the upstream full name when it has an owner and a name part, otherwise synthesize one."""
    text = _as_text(candidate)
    if text:
        owner_part, sep, name_part = text.strip("/").rpartition("/")
        if sep and owner_part and name_part:
            return _join_full_name(owner_part, name_part)
    return _join_full_name(owner_login, name)


def _require_owner(owner_fallback: str, raw: Mapping[str, Any]) -> str:
    """Return the requested owner when the payload names none; no owner at all is malformed."""
    login = (owner_fallback or "").strip()
    if not login:
        raise UpstreamMalformedError(
            "Repository payload has no owner", details=f"keys={sorted(raw)[:10]}"
        )
    return login


def _normalize_gitlab(
    raw: Mapping[str, Any], platform: Platform, config: PlatformConfig, owner_fallback: str
) -> CanonicalRepository:
    name = raw["name"]
    namespace = _as_mapping(raw.get("namespace"))
    owner = _as_mapping(raw.get("owner"))

    login = (
        _as_text(namespace.get("name"))
        or _as_text(owner.get("username"))
        or _as_text(owner.get("name"))
        or _require_owner(owner_fallback, raw)
    )
    owner_type_raw = namespace.get("kind") or owner.get("type")
    owner_info = OwnerInfo(
        login=login,
        avatar_url=_as_text(namespace.get("avatar_url"))
        or _as_text(owner.get("avatar_url"))
        or "",
        html_url=_as_text(namespace.get("web_url"))
        or _as_text(owner.get("web_url"))
        or f"{config.web_base_url}/{login}",
        type=normalize_owner_type(owner_type_raw, platform),
    )

    return CanonicalRepository(
        name=name,
        full_name=_full_name(raw.get("path_with_namespace"), login, name),
        platform=platform.value,
        description=_as_text(raw.get("description")),
        language=_as_text(raw.get("language")),
        html_url=_as_text(raw.get("web_url")) or f"{config.web_base_url}/{login}/{name}",
        star_count=_as_count(raw.get("star_count")),
        fork_count=_as_count(raw.get("forks_count")),
        open_issue_count=_as_count(raw.get("open_issues_count")),
        clone_url=_as_text(raw.get("http_url_to_repo")) or "",
        owner=owner_info,
        repo_avatar_url=_as_text(raw.get("avatar_url")),
        default_branch=_as_text(raw.get("default_branch")),
        site_info=config.site_info(),
    )


def _normalize_github_like(
    raw: Mapping[str, Any], platform: Platform, config: PlatformConfig, owner_fallback: str
) -> CanonicalRepository:
    name = raw["name"]
    owner = _as_mapping(raw.get("owner"))
    login = (
        _as_text(owner.get("login"))
        or _as_text(owner.get("username"))
        or _require_owner(owner_fallback, raw)
    )

    owner_info = OwnerInfo(
        login=login,
        avatar_url=_as_text(owner.get("avatar_url")) or "",
        html_url=_as_text(owner.get("html_url")) or f"{config.web_base_url}/{login}",
        type=normalize_owner_type(owner.get("type"), platform),
    )

    return CanonicalRepository(
        name=name,
        full_name=_full_name(raw.get("full_name"), login, name),
        platform=platform.value,
        description=_as_text(raw.get("description")),
        language=_as_text(raw.get("language")),
        html_url=_as_text(raw.get("html_url")) or f"{config.web_base_url}/{login}/{name}",
        star_count=_as_count(raw.get("stargazers_count"), raw.get("stars_count")),
        fork_count=_as_count(raw.get("forks_count"), raw.get("forks")),
        open_issue_count=_as_count(raw.get("open_issues_count"), raw.get("open_issues")),
        clone_url=_as_text(raw.get("clone_url")) or "",
        owner=owner_info,
        repo_avatar_url=_as_text(raw.get("avatar_url")),
        default_branch=_as_text(raw.get("default_branch")),
        site_info=config.site_info(),
    )


_NORMALIZERS: Dict[
    Platform,
    Callable[[Mapping[str, Any], Platform, PlatformConfig, str], CanonicalRepository],
] = {
    Platform.GITHUB: _normalize_github_like,
    Platform.GITEA: _normalize_github_like,
    Platform.FORGEJO: _normalize_github_like,
    Platform.CUSTOM: _normalize_github_like,
    Platform.GITLAB: _normalize_gitlab,
}


def normalize_repository(
    raw: Any, platform, config: PlatformConfig, requested_owner: str = ""
) -> CanonicalRepository:
    """
    Normalize an upstream repository payload.

    The returned record has no `download_info` yet; that is filled in once the
    download reference has been resolved.

    Parameters:
        raw (Any): Decoded JSON body of the repository endpoint.
        platform (Platform | str): Platform the payload came from.
        config (PlatformConfig): Configuration used for URL fallbacks and site info.
        requested_owner (str): Owner from the request, used when the payload names none.

    Returns:
        CanonicalRepository: The normalized record.

    Raises:
        UpstreamMalformedError: If the payload is not an object with a repository name,
            or neither the payload nor the request names an owner.
    """
    platform = Platform.parse(platform)
    if not isinstance(raw, Mapping):
        raise UpstreamMalformedError(
            "Repository payload is not a JSON object",
            details=f"got {type(raw).__name__}",
        )
    if not _as_text(raw.get("name")):
        raise UpstreamMalformedError(
            "Repository payload has no name", details=f"keys={sorted(raw)[:10]}"
        )

    return _NORMALIZERS[platform](raw, platform, config, requested_owner)
