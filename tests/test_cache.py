"""Tests for the in-memory and file cache backends."""

import json
import os
from datetime import datetime, timedelta, timezone

import pytest

from gitembed.cache import FileCache, InMemoryCache

pytestmark = [pytest.mark.unit]


class TestInMemoryCache:
    def test_set_get_delete(self):
        cache = InMemoryCache()

        assert cache.set("git_embed_a", {"x": 1}, 60) is True
        assert cache.get("git_embed_a") == {"x": 1}

        cache.delete("git_embed_a")
        cache.delete("git_embed_missing")
        assert cache.get("git_embed_a") is None

    def test_expiry_uses_injected_clock(self):
        now = {"t": 100.0}
        cache = InMemoryCache(clock=lambda: now["t"])
        cache.set("k", "v", 10)

        now["t"] = 109.9
        assert cache.get("k") == "v"
        now["t"] = 110.0
        assert cache.get("k") is None
        assert "k" not in cache.keys()

    def test_delete_by_prefix(self):
        cache = InMemoryCache()
        for key in ("git_embed_avatar_1", "git_embed_avatar_2", "git_embed_github_o_r"):
            cache.set(key, True, 60)
        cache.set("other_key", True, 60)

        assert cache.delete_by_prefix("git_embed_avatar_") == 2
        assert sorted(cache.keys()) == ["git_embed_github_o_r", "other_key"]

        assert cache.delete_by_prefix("git_embed_") == 1
        assert cache.keys() == ["other_key"]


class TestFileCache:
    def test_default_dir_from_platformdirs(self):
        import platformdirs

        cache = FileCache()

        assert cache.cache_dir == platformdirs.user_cache_dir("gitembed")
        assert os.path.isdir(cache.cache_dir)

    def test_round_trip_and_file_layout(self, tmp_path):
        cache = FileCache(str(tmp_path))

        assert cache.set("git_embed_github_octocat_myrepo", {"stars": 3}, 3600)
        assert cache.get("git_embed_github_octocat_myrepo") == {"stars": 3}

        with open(cache.get_cache_file_path("git_embed_github_octocat_myrepo")) as f:
            stored = json.load(f)
        assert stored["key"] == "git_embed_github_octocat_myrepo"
        assert set(stored) == {"key", "data", "cached_at", "expires_at"}

    def test_unsafe_key_characters_are_sanitized(self, tmp_path):
        cache = FileCache(str(tmp_path))
        key = "git_embed_gitea_team_tool_https://git.example.org/_My Forge"

        cache.set(key, "value", 60)

        assert cache.get(key) == "value"
        assert all("/" not in name for name in os.listdir(tmp_path))

    def test_colliding_file_names_do_not_leak(self, tmp_path):
        cache = FileCache(str(tmp_path))
        cache.set("git_embed_a/b", "first", 60)

        assert cache.get("git_embed_a-b") is None
        assert cache.get("git_embed_a/b") == "first"

    def test_delete_of_colliding_key_keeps_entry(self, tmp_path):
        cache = FileCache(str(tmp_path))
        cache.set("git_embed_a/b", "first", 60)

        cache.delete("git_embed_a-b")

        assert cache.get("git_embed_a/b") == "first"

        cache.delete("git_embed_a/b")
        assert cache.get("git_embed_a/b") is None
        assert os.listdir(tmp_path) == []

    def test_delete_removes_corrupt_file(self, tmp_path):
        cache = FileCache(str(tmp_path))
        path = cache.get_cache_file_path("git_embed_bad")
        with open(path, "w") as f:
            f.write("{not json")

        cache.delete("git_embed_bad")

        assert not os.path.exists(path)

    def test_expired_entry_is_removed(self, tmp_path):
        cache = FileCache(str(tmp_path))
        cache.set("git_embed_old", "v", 60)
        path = cache.get_cache_file_path("git_embed_old")
        with open(path) as f:
            stored = json.load(f)
        stored["expires_at"] = (
            datetime.now(timezone.utc) - timedelta(seconds=1)
        ).isoformat()
        with open(path, "w") as f:
            json.dump(stored, f)

        assert cache.get("git_embed_old") is None
        assert not os.path.exists(path)

    def test_corrupt_file_is_a_miss(self, tmp_path):
        cache = FileCache(str(tmp_path))
        path = cache.get_cache_file_path("git_embed_bad")
        with open(path, "w") as f:
            f.write("{not json")

        assert cache.get("git_embed_bad") is None
        assert not os.path.exists(path)

    def test_delete_and_delete_by_prefix(self, tmp_path):
        cache = FileCache(str(tmp_path))
        cache.set("git_embed_avatar_aa", True, 60)
        cache.set("git_embed_avatar_bb", True, 60)
        cache.set("git_embed_github_o_r", {"n": 1}, 60)
        (tmp_path / "unrelated.txt").write_text("keep")

        cache.delete("git_embed_github_o_r")
        assert cache.get("git_embed_github_o_r") is None

        assert cache.delete_by_prefix("git_embed_avatar_") == 2
        assert cache.get("git_embed_avatar_aa") is None
        assert (tmp_path / "unrelated.txt").exists()

    def test_unserializable_value_is_not_written(self, tmp_path):
        cache = FileCache(str(tmp_path))

        assert cache.set("git_embed_x", object(), 60) is False
        assert cache.get("git_embed_x") is None
        assert os.listdir(tmp_path) == []
