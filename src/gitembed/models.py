"""
Core data structures for gitembed.

`CanonicalRepository` is the platform-agnostic record produced by the resolver
and the only thing stored in the repository cache. It converts to and from a
plain JSON-serializable dict so any cache backend can hold it.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from gitembed.constants import OWNER_TYPE_ORGANIZATION, OWNER_TYPE_USER

DOWNLOAD_KIND_RELEASE = "release"
DOWNLOAD_KIND_BRANCH = "branch"


@dataclass(frozen=True)
class OwnerInfo:
    """Represents the account that owns a repository."""

    login: str
    """Account or namespace name"""

    avatar_url: str = ""
    """Owner avatar image URL"""

    html_url: str = ""
    """Owner profile page"""

    type: str = OWNER_TYPE_USER
    """Either 'User' or 'Organization'"""

    def __post_init__(self):
        if self.type not in (OWNER_TYPE_USER, OWNER_TYPE_ORGANIZATION):
            raise ValueError(f"Invalid owner type: {self.type!r}")


@dataclass(frozen=True)
class SiteInfo:
    """Display metadata for the hosting site, copied from the platform config."""

    name: str
    url: str
    favicon: str
    color: str


@dataclass(frozen=True)
class DownloadRef:
    """The release tag or branch selected as the archive download target."""

    kind: str
    """'release' or 'branch'"""

    ref: str
    """Tag name or branch name"""

    display_name: str
    """Human-readable label (release name, or 'Latest Code' for branches)"""

    @property
    def is_release(self) -> bool:
        return self.kind == DOWNLOAD_KIND_RELEASE


@dataclass(frozen=True)
class DownloadInfo:
    """A resolved download reference plus its archive URL and suggested filename."""

    kind: str
    ref: str
    display_name: str
    url: str
    """Fully-qualified https URL, or an empty string when unresolvable"""

    filename: str


@dataclass(frozen=True)
class CanonicalRepository:
    """Normalized repository metadata shared by every supported platform."""

    name: str
    full_name: str
    platform: str
    html_url: str
    clone_url: str
    owner: OwnerInfo
    site_info: SiteInfo
    description: Optional[str] = None
    language: Optional[str] = None
    star_count: int = 0
    fork_count: int = 0
    open_issue_count: int = 0
    repo_avatar_url: Optional[str] = None
    default_branch: Optional[str] = None
    download_info: Optional[DownloadInfo] = None

    @property
    def avatar_url(self) -> str:
        """Repository avatar when the platform provides one, otherwise the owner's."""
        return self.repo_avatar_url or self.owner.avatar_url

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CanonicalRepository":
        """
        Rebuild a record from the mapping produced by `to_dict`.

        Raises:
            KeyError, TypeError, ValueError: If the mapping does not describe a record.
        """
        values = dict(data)
        values["owner"] = OwnerInfo(**values["owner"])
        values["site_info"] = SiteInfo(**values["site_info"])
        download_info = values.get("download_info")
        values["download_info"] = (
            DownloadInfo(**download_info) if download_info is not None else None
        )
        return cls(**values)
