"""Tests for the gitembed command-line interface."""

import json

import pytest

import gitembed.config as gitembed_config
from gitembed import cli
from gitembed.cache import InMemoryCache
from tests.upstream_fakes import github_repo_payload, make_response

pytestmark = [pytest.mark.unit]

GH_REPO = "https://api.github.com/repos/octocat/myrepo"


@pytest.fixture
def shared_cache(mocker):
    cache = InMemoryCache()
    mocker.patch("gitembed.cli.build_cache", return_value=cache)
    return cache


def _output(capsys):
    return json.loads(capsys.readouterr().out)


class TestFetchCommand:
    def test_fetch_prints_envelope(self, upstream, shared_cache, capsys):
        upstream.add_json(GH_REPO, github_repo_payload())
        upstream.add(
            "https://avatars.githubusercontent.com/u/1", make_response(200)
        )

        exit_code = cli.main(["fetch", "github", "octocat", "myrepo"])

        assert exit_code == 0
        payload = _output(capsys)
        assert payload["success"] is True
        assert payload["data"]["full_name"] == "octocat/myrepo"
        assert payload["data"]["download_info"]["filename"] == "myrepo-main.zip"

    def test_fetch_missing_domain(self, upstream, shared_cache, capsys):
        exit_code = cli.main(["fetch", "gitea", "team", "tool"])

        assert exit_code == 1
        assert _output(capsys) == {
            "success": False,
            "data": "Custom domain required for Gitea",
        }
        assert upstream.calls == []

    def test_refresh_bypasses_cache(self, upstream, shared_cache, capsys):
        upstream.add_json(GH_REPO, github_repo_payload())

        cli.main(["fetch", "github", "octocat", "myrepo"])
        cli.main(["fetch", "github", "octocat", "myrepo", "--refresh"])
        capsys.readouterr()

        assert upstream.count(GH_REPO) == 2

    def test_unknown_platform_is_a_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["fetch", "bitbucket", "o", "r"])
        assert exc_info.value.code == 2


class TestCacheCommands:
    def test_clear(self, shared_cache, capsys):
        shared_cache.set("git_embed_github_o_r", {}, 60)

        assert cli.main(["cache", "clear", "github", "o", "r"]) == 0
        assert _output(capsys)["data"] == "Cache cleared successfully"
        assert shared_cache.get("git_embed_github_o_r") is None

    def test_clear_all(self, shared_cache, capsys):
        shared_cache.set("git_embed_github_o_r", {}, 60)
        shared_cache.set("git_embed_avatar_x", True, 60)

        assert cli.main(["cache", "clear-all"]) == 0
        assert _output(capsys)["data"] == "Removed 2 cache entries"


class TestMisc:
    def test_version(self, capsys):
        assert cli.main(["version"]) == 0
        assert capsys.readouterr().out.startswith("gitembed ")

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 2
        assert "usage" in capsys.readouterr().out

    def test_bad_config_exits_with_error(self, capsys):
        with open(gitembed_config.CONFIG_FILE, "w", encoding="utf-8") as f:
            f.write("CACHE_BACKEND: redis\n")

        assert cli.main(["cache", "clear-all"]) == 1
