"""Tests for user configuration (~/.config/wt/config.yaml)"""
from datetime import timedelta

import pytest

from worktree_keeper.exceptions import ConfigError
from worktree_keeper.user_config import (
    RepoUserConfig,
    UserConfig,
    get_user_config_path,
    load_user_config,
    parse_duration,
    save_user_config,
    validate_fetch_interval,
)


class TestParseDuration:
    """Test duration parsing."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("0", timedelta(0)),
            ("30s", timedelta(seconds=30)),
            ("5m", timedelta(minutes=5)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("1.5h", timedelta(minutes=90)),
            ("500ms", timedelta(milliseconds=500)),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "5", "abc", "5x", "m5", "1h 30m"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)

    def test_validate_accepts_never(self):
        validate_fetch_interval("never")
        validate_fetch_interval("10m")

    def test_validate_rejects_garbage(self):
        with pytest.raises(ConfigError, match="fetch_interval"):
            validate_fetch_interval("sometimes")


class TestEffectiveValues:
    """Test per-repo overrides falling back to global values and defaults."""

    def test_defaults(self):
        config = UserConfig()
        assert config.get_remote_for_repo("/repo") == ""
        assert config.get_fetch_interval_string("/repo") == "5m"
        assert config.get_fetch_interval_for_repo("/repo") == timedelta(minutes=5)

    def test_global_values(self):
        config = UserConfig(remote="origin", fetch_interval="1h")
        assert config.get_remote_for_repo("/repo") == "origin"
        assert config.get_fetch_interval_for_repo("/repo") == timedelta(hours=1)

    def test_repo_override_wins(self):
        config = UserConfig(
            remote="origin",
            fetch_interval="1h",
            repos={"/repo": RepoUserConfig(remote="upstream", fetch_interval="never")},
        )
        assert config.get_remote_for_repo("/repo") == "upstream"
        assert config.get_fetch_interval_for_repo("/repo") is None
        # Other repositories still see the global values
        assert config.get_remote_for_repo("/other") == "origin"

    def test_repo_zero_interval_overrides_global(self):
        config = UserConfig(fetch_interval="1h", repos={"/repo": RepoUserConfig(fetch_interval="0")})
        assert config.get_fetch_interval_for_repo("/repo") == timedelta(0)

    def test_invalid_stored_interval_means_always_fetch(self):
        config = UserConfig(fetch_interval="bogus")
        assert config.get_fetch_interval_for_repo("/repo") == timedelta(0)


class TestSetAndUnset:
    """Test the mutators used by `wt config`."""

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="unknown config key"):
            UserConfig().set_global("colour", "blue")

    def test_set_global_validates_interval(self):
        config = UserConfig()
        with pytest.raises(ConfigError):
            config.set_global("fetch_interval", "soon")
        config.set_global("fetch_interval", "never")
        assert config.fetch_interval == "never"

    def test_get_global_interval_default(self):
        assert UserConfig().get_global("fetch_interval") == "5m"

    def test_set_and_unset_for_repo(self):
        config = UserConfig()
        config.set_for_repo("/repo", "remote", "origin")
        assert config.get_for_repo("/repo", "remote") == "origin"

        config.unset_for_repo("/repo", "remote")
        assert "/repo" not in config.repos
        assert config.get_for_repo("/repo", "remote") is None

    def test_unset_keeps_other_repo_values(self):
        config = UserConfig()
        config.set_for_repo("/repo", "remote", "origin")
        config.set_for_repo("/repo", "fetch_interval", "1m")
        config.unset_for_repo("/repo", "remote")
        assert config.repos["/repo"] == RepoUserConfig(fetch_interval="1m")

    def test_unset_global(self):
        config = UserConfig(remote="origin")
        config.unset_global("remote")
        assert config.remote == ""


class TestPersistence:
    """Test loading and saving the user config file."""

    def test_path_under_home(self, isolated_home):
        assert get_user_config_path() == isolated_home / ".config" / "wt" / "config.yaml"

    def test_missing_file_is_defaults(self):
        assert load_user_config() == UserConfig()

    def test_save_then_load(self):
        config = UserConfig(remote="origin")
        config.set_for_repo("/work/project", "fetch_interval", "0")
        save_user_config(config)

        path = get_user_config_path()
        assert path.exists()
        # No temp files left behind
        assert [p.name for p in path.parent.iterdir()] == ["config.yaml"]

        loaded = load_user_config()
        assert loaded.remote == "origin"
        assert loaded.repos["/work/project"].fetch_interval == "0"

    def test_empty_repo_entries_not_written(self):
        config = UserConfig(repos={"/repo": RepoUserConfig()})
        assert config.to_dict() == {}

    def test_invalid_yaml(self, temp_dir):
        path = temp_dir / "config.yaml"
        path.write_text("remote: [oops\n")
        with pytest.raises(ConfigError, match="failed to parse"):
            load_user_config(path)

    def test_non_mapping(self, temp_dir):
        path = temp_dir / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_user_config(path)
