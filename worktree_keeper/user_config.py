"""User configuration (~/.config/wt/config.yaml) for worktree-keeper"""

import os
import re
import tempfile
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from worktree_keeper.constants import (
    DEFAULT_FETCH_INTERVAL,
    FETCH_INTERVAL_NEVER,
    USER_CONFIG_DIR,
    USER_CONFIG_FILE,
)
from worktree_keeper.exceptions import ConfigError
from worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)

VALID_KEYS = ("remote", "fetch_interval")

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1,
    "m": 60,
    "h": 3600,
}


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as "5m", "1h30m", "90s" or "0".

    Raises:
        ValueError: value is not a valid duration
    """
    text = (value or "").strip()
    if text in ("0", "+0", "-0"):
        return timedelta(0)
    if not text:
        raise ValueError("empty duration")

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(text) or pos == 0:
        raise ValueError(f"invalid duration {value!r}")
    return timedelta(seconds=sign * total)


def validate_fetch_interval(value: str) -> None:
    """Reject values that are neither "never" nor a duration."""
    if value == FETCH_INTERVAL_NEVER:
        return
    try:
        parse_duration(value)
    except ValueError:
        raise ConfigError("fetch_interval must be a valid duration (e.g., '5m', '1h', '30s') or 'never'")


@dataclass
class RepoUserConfig:
    """Per-repository overrides. None means "not set here"."""

    remote: Optional[str] = None
    fetch_interval: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.remote and self.fetch_interval is None

    def to_dict(self) -> dict:
        result = {}
        if self.remote:
            result["remote"] = self.remote
        if self.fetch_interval is not None:
            result["fetch_interval"] = self.fetch_interval
        return result

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "RepoUserConfig":
        data = data or {}
        interval = data.get("fetch_interval")
        return cls(
            remote=data.get("remote") or None,
            fetch_interval=None if interval is None else str(interval),
        )


@dataclass
class UserConfig:
    """User-level settings shared by every repository."""

    remote: str = ""  # Empty = compare against the local default branch
    fetch_interval: str = ""  # Empty = DEFAULT_FETCH_INTERVAL
    repos: Dict[str, RepoUserConfig] = field(default_factory=dict)

    def get_remote_for_repo(self, repo_path: str) -> str:
        """Effective remote: per-repo override, then global."""
        repo_config = self.repos.get(repo_path)
        if repo_config and repo_config.remote:
            return repo_config.remote
        return self.remote or ""

    def get_fetch_interval_string(self, repo_path: str) -> str:
        """Effective fetch interval as configured: per-repo, global, then default."""
        repo_config = self.repos.get(repo_path)
        if repo_config and repo_config.fetch_interval is not None:
            return repo_config.fetch_interval
        return self.fetch_interval or DEFAULT_FETCH_INTERVAL

    def get_fetch_interval_for_repo(self, repo_path: str) -> Optional[timedelta]:
        """Effective minimum time between fetches.

        Returns:
            None when fetching is disabled ("never"); a zero timedelta for
            "0" or an unparsable value, meaning always fetch
        """
        interval = self.get_fetch_interval_string(repo_path)
        if interval == FETCH_INTERVAL_NEVER:
            return None
        try:
            return parse_duration(interval)
        except ValueError:
            logger.debug(f"Invalid fetch_interval {interval!r}, fetching every time")
            return timedelta(0)

    def get_global(self, key: str) -> str:
        _check_key(key)
        if key == "remote":
            return self.remote
        return self.fetch_interval or DEFAULT_FETCH_INTERVAL

    def set_global(self, key: str, value: str) -> None:
        _check_key(key)
        if key == "fetch_interval":
            validate_fetch_interval(value)
        setattr(self, key, value)

    def unset_global(self, key: str) -> None:
        _check_key(key)
        setattr(self, key, "")

    def get_for_repo(self, repo_path: str, key: str) -> Optional[str]:
        """Per-repo value, or None when the repository does not override key."""
        _check_key(key)
        repo_config = self.repos.get(repo_path)
        if repo_config is None:
            return None
        return getattr(repo_config, key)

    def set_for_repo(self, repo_path: str, key: str, value: str) -> None:
        _check_key(key)
        if key == "fetch_interval":
            validate_fetch_interval(value)
        repo_config = self.repos.setdefault(repo_path, RepoUserConfig())
        setattr(repo_config, key, value)

    def unset_for_repo(self, repo_path: str, key: str) -> None:
        _check_key(key)
        repo_config = self.repos.get(repo_path)
        if repo_config is None:
            return
        setattr(repo_config, key, None)
        if repo_config.is_empty():
            del self.repos[repo_path]

    def to_dict(self) -> dict:
        result: dict = {}
        if self.remote:
            result["remote"] = self.remote
        if self.fetch_interval:
            result["fetch_interval"] = self.fetch_interval
        repos = {path: rc.to_dict() for path, rc in self.repos.items() if not rc.is_empty()}
        if repos:
            result["repos"] = repos
        return result

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "UserConfig":
        data = data or {}
        repos = data.get("repos") or {}
        if not isinstance(repos, dict):
            raise ValueError("repos must be a mapping of repository path to settings")
        interval = data.get("fetch_interval")
        return cls(
            remote=data.get("remote") or "",
            fetch_interval="" if interval is None else str(interval),
            repos={str(path): RepoUserConfig.from_dict(rc) for path, rc in repos.items()},
        )


def _check_key(key: str) -> None:
    if key not in VALID_KEYS:
        raise ConfigError(f"unknown config key: {key}\nValid keys: {', '.join(VALID_KEYS)}")


def valid_keys() -> List[str]:
    return list(VALID_KEYS)


def get_user_config_path() -> Path:
    """Full path of the user config file."""
    return Path.home() / USER_CONFIG_DIR / USER_CONFIG_FILE


def load_user_config(path: Optional[Path] = None) -> UserConfig:
    """Load the user config, returning defaults when the file does not exist.

    Raises:
        ConfigError: The file exists but cannot be read or parsed
    """
    path = path or get_user_config_path()
    if not path.exists():
        return UserConfig()
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse {path}: {e}")
    except OSError as e:
        raise ConfigError(f"failed to read {path}: {e}")
    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    try:
        return UserConfig.from_dict(data)
    except ValueError as e:
        raise ConfigError(f"invalid user config {path}: {e}")


def save_user_config(config: UserConfig, path: Optional[Path] = None) -> None:
    """Write the user config atomically (temp file in the same directory, then rename)."""
    path = path or get_user_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(prefix=".config.yaml.tmp.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w") as f:
            yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise
    logger.debug(f"Saved user config to {path}")
