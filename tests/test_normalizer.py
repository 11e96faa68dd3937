"""Tests for the repository data normalizer."""

import pytest

from gitembed.exceptions import UpstreamMalformedError
from gitembed.normalizer import normalize_owner_type, normalize_repository
from gitembed.platforms import get_platform_config
from tests.upstream_fakes import (
    gitea_repo_payload,
    github_repo_payload,
    gitlab_repo_payload,
)

pytestmark = [pytest.mark.unit]


class TestNormalizeOwnerType:
    @pytest.mark.parametrize(
        "value", ["Organization", "organization", "ORG", "org", "Group", "team"]
    )
    @pytest.mark.parametrize("platform", ["github", "gitlab", "gitea"])
    def test_organization_aliases(self, value, platform):
        assert normalize_owner_type(value, platform) == "Organization"

    @pytest.mark.parametrize("value", ["User", "user", "individual", "person", "Bot", "?"])
    @pytest.mark.parametrize("platform", ["github", "forgejo", "custom"])
    def test_user_and_unrecognized_values(self, value, platform):
        assert normalize_owner_type(value, platform) == "User"

    def test_absent_type_defaults_to_user_on_github(self):
        assert normalize_owner_type(None, "github") == "User"

    def test_absent_type_defaults_to_user_on_gitlab(self):
        assert normalize_owner_type(None, "gitlab") == "User"

    # Pinned behavior: self-hosted instances default a missing owner type to
    # Organization while GitHub defaults to User.
    @pytest.mark.parametrize("platform", ["gitea", "forgejo", "custom"])
    @pytest.mark.parametrize("value", [None, ""])
    def test_absent_type_defaults_to_organization_on_self_hosted(self, platform, value):
        assert normalize_owner_type(value, platform) == "Organization"


class TestGithubFamily:
    def test_github_payload(self, github_config):
        record = normalize_repository(github_repo_payload(), "github", github_config)

        assert record.name == "myrepo"
        assert record.full_name == "octocat/myrepo"
        assert record.platform == "github"
        assert record.star_count == 42
        assert record.fork_count == 5
        assert record.open_issue_count == 3
        assert record.clone_url == "https://github.com/octocat/myrepo.git"
        assert record.owner.login == "octocat"
        assert record.owner.type == "User"
        assert record.repo_avatar_url is None
        assert record.default_branch == "main"
        assert record.download_info is None
        assert record.site_info.name == "GitHub"

    def test_gitea_counter_field_names(self, gitea_config):
        record = normalize_repository(gitea_repo_payload(), "gitea", gitea_config)

        assert record.star_count == 9
        assert record.fork_count == 2
        assert record.open_issue_count == 1
        assert record.description is None
        assert record.repo_avatar_url == "https://git.example.org/repo-avatars/7"
        assert record.owner.html_url == "https://git.example.org/team"
        assert record.owner.type == "Organization"
        assert record.site_info.name == "Example Gitea"

    def test_primary_field_name_preferred(self, github_config):
        payload = github_repo_payload(stargazers_count=7, stars_count=99)
        assert normalize_repository(payload, "github", github_config).star_count == 7

    def test_missing_counters_default_to_zero(self, github_config):
        payload = github_repo_payload()
        for key in ("stargazers_count", "forks_count", "open_issues_count"):
            del payload[key]

        record = normalize_repository(payload, "github", github_config)

        assert (record.star_count, record.fork_count, record.open_issue_count) == (0, 0, 0)

    @pytest.mark.parametrize("bad", [-3, "many", None, True, [1]])
    def test_unusable_counters_default_to_zero(self, github_config, bad):
        payload = github_repo_payload(stargazers_count=bad)
        assert normalize_repository(payload, "github", github_config).star_count == 0

    def test_full_name_synthesized(self, github_config):
        payload = github_repo_payload()
        del payload["full_name"]

        assert normalize_repository(payload, "github", github_config).full_name == (
            "octocat/myrepo"
        )

    def test_organization_owner(self, github_config):
        payload = github_repo_payload()
        payload["owner"]["type"] = "Organization"

        record = normalize_repository(payload, "github", github_config)

        assert record.owner.type == "Organization"


class TestGitlabFamily:
    def test_gitlab_payload(self, gitlab_config):
        record = normalize_repository(gitlab_repo_payload(), "gitlab", gitlab_config)

        assert record.full_name == "acme/widget"
        assert record.star_count == 7
        assert record.fork_count == 4
        assert record.open_issue_count == 2
        assert record.html_url == "https://gitlab.example.com/acme/widget"
        assert record.clone_url == "https://gitlab.example.com/acme/widget.git"
        assert record.owner.login == "acme"
        assert record.owner.type == "Organization"
        assert record.owner.html_url == "https://gitlab.example.com/groups/acme"
        assert record.repo_avatar_url is None
        assert record.language is None

    def test_star_count_matches_github_shape(self, gitlab_config, github_config):
        gitlab = normalize_repository(
            gitlab_repo_payload(star_count=7), "gitlab", gitlab_config
        )
        github = normalize_repository(
            github_repo_payload(stargazers_count=7), "github", github_config
        )
        assert gitlab.star_count == github.star_count == 7

    def test_full_name_synthesized_from_namespace(self, gitlab_config):
        payload = gitlab_repo_payload()
        del payload["path_with_namespace"]

        record = normalize_repository(payload, "gitlab", gitlab_config)

        assert record.full_name == "acme/widget"

    def test_owner_falls_back_to_owner_object(self, gitlab_config):
        payload = gitlab_repo_payload()
        del payload["namespace"]
        payload["owner"] = {
            "username": "jdoe",
            "avatar_url": "https://gitlab.example.com/jdoe.png",
        }

        record = normalize_repository(payload, "gitlab", gitlab_config)

        assert record.owner.login == "jdoe"
        assert record.owner.avatar_url == "https://gitlab.example.com/jdoe.png"
        assert record.owner.html_url == "https://gitlab.example.com/jdoe"
        assert record.owner.type == "User"

    def test_user_namespace(self, gitlab_config):
        payload = gitlab_repo_payload()
        payload["namespace"]["kind"] = "user"

        assert normalize_repository(payload, "gitlab", gitlab_config).owner.type == "User"

    def test_repo_avatar_carried_through(self, gitlab_config):
        payload = gitlab_repo_payload(avatar_url="https://gitlab.example.com/p.png")

        record = normalize_repository(payload, "gitlab", gitlab_config)

        assert record.repo_avatar_url == "https://gitlab.example.com/p.png"
        assert record.avatar_url == "https://gitlab.example.com/p.png"


class TestMalformedPayloads:
    @pytest.mark.parametrize("payload", [[], "text", 3, None])
    def test_non_object(self, github_config, payload):
        with pytest.raises(UpstreamMalformedError):
            normalize_repository(payload, "github", github_config)

    def test_missing_name(self, github_config):
        payload = github_repo_payload()
        del payload["name"]

        with pytest.raises(UpstreamMalformedError):
            normalize_repository(payload, "github", github_config)

    def test_missing_owner_uses_requested_owner(self, github_config):
        payload = github_repo_payload()
        del payload["owner"]
        del payload["full_name"]

        record = normalize_repository(payload, "github", github_config, "octocat")

        assert record.owner.login == "octocat"
        assert record.full_name == "octocat/myrepo"

    def test_missing_gitlab_owner_uses_requested_owner(self, gitlab_config):
        payload = gitlab_repo_payload()
        del payload["namespace"]
        del payload["path_with_namespace"]

        record = normalize_repository(payload, "gitlab", gitlab_config, "acme")

        assert record.full_name == "acme/widget"

    def test_no_owner_anywhere(self, github_config):
        payload = github_repo_payload()
        del payload["owner"]
        del payload["full_name"]

        with pytest.raises(UpstreamMalformedError):
            normalize_repository(payload, "github", github_config)
