"""Repository configuration (.wt.yaml) for worktree-keeper"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import yaml

from worktree_keeper.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_BRANCH_PATTERN,
    DEFAULT_WORKTREE_DIR,
)
from worktree_keeper.exceptions import ConfigError

HOOK_EVENTS = ("pre_create", "post_create", "pre_delete", "post_delete", "info")


@dataclass
class HookEntry:
    """A single hook script and the extra environment it runs with."""

    script: str
    env: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.script, str) or not self.script.strip():
            raise ValueError("hook script cannot be empty")
        if self.env is None:
            self.env = {}
        if not isinstance(self.env, dict):
            raise ValueError(f"hook env for {self.script} must be a mapping")
        self.env = {str(k): "" if v is None else str(v) for k, v in self.env.items()}

    @classmethod
    def from_dict(cls, data) -> "HookEntry":
        # Bare strings are accepted as shorthand for {script: ...}
        if isinstance(data, str):
            return cls(script=data)
        if not isinstance(data, dict):
            raise ValueError(f"hook entry must be a mapping, got {type(data).__name__}")
        return cls(script=data.get("script", ""), env=data.get("env") or {})

    def to_dict(self) -> dict:
        result: dict = {"script": self.script}
        if self.env:
            result["env"] = dict(self.env)
        return result


@dataclass
class HooksConfig:
    """Hook lists per lifecycle event, run in the order given."""

    pre_create: List[HookEntry] = field(default_factory=list)
    post_create: List[HookEntry] = field(default_factory=list)
    pre_delete: List[HookEntry] = field(default_factory=list)
    post_delete: List[HookEntry] = field(default_factory=list)
    info: List[HookEntry] = field(default_factory=list)

    def for_event(self, event: str) -> List[HookEntry]:
        if event not in HOOK_EVENTS:
            raise ValueError(f"unknown hook event '{event}', expected one of {list(HOOK_EVENTS)}")
        return getattr(self, event)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "HooksConfig":
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("hooks must be a mapping of event name to a list of scripts")
        unknown = set(data) - set(HOOK_EVENTS)
        if unknown:
            raise ValueError(f"unknown hook event(s): {', '.join(sorted(unknown))}")
        kwargs = {}
        for event, entries in data.items():
            if entries is None:
                continue
            if not isinstance(entries, list):
                raise ValueError(f"hooks.{event} must be a list")
            kwargs[event] = [HookEntry.from_dict(entry) for entry in entries]
        return cls(**kwargs)

    def to_dict(self) -> dict:
        return {event: [e.to_dict() for e in getattr(self, event)] for event in HOOK_EVENTS}


@dataclass
class Config:
    """Repository configuration for worktree-keeper with validation."""

    version: int = 1
    worktree_dir: str = DEFAULT_WORKTREE_DIR
    branch_pattern: str = DEFAULT_BRANCH_PATTERN
    default_branch: str = ""  # Empty = auto-detect
    index_max: int = 0  # 0 = unbounded
    hooks: HooksConfig = field(default_factory=HooksConfig)

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_version()
        self._validate_worktree_dir()
        self._validate_branch_pattern()
        self._validate_default_branch()
        self._validate_index_max()

    def _validate_version(self):
        """Validate version is a known schema version."""
        if self.version != 1:
            raise ValueError(f"unsupported config version {self.version}, expected 1")

    def _validate_worktree_dir(self):
        """Validate worktree_dir is a relative path inside the repository."""
        if not self.worktree_dir or not str(self.worktree_dir).strip():
            self.worktree_dir = DEFAULT_WORKTREE_DIR
        self.worktree_dir = str(self.worktree_dir).strip().rstrip("/")
        normalized = os.path.normpath(self.worktree_dir)
        if os.path.isabs(normalized) or normalized.split(os.sep)[0] == "..":
            raise ValueError(f"worktree_dir must be relative to the repository root, got '{self.worktree_dir}'")

    def _validate_branch_pattern(self):
        """Validate branch_pattern contains the {name} placeholder."""
        if not self.branch_pattern or not str(self.branch_pattern).strip():
            self.branch_pattern = DEFAULT_BRANCH_PATTERN
        if "{name}" not in self.branch_pattern:
            raise ValueError(f"branch_pattern must contain {{name}}, got '{self.branch_pattern}'")

    def _validate_default_branch(self):
        self.default_branch = (self.default_branch or "").strip()

    def _validate_index_max(self):
        """Validate index_max is not negative."""
        if not isinstance(self.index_max, int) or self.index_max < 0:
            raise ValueError(f"index.max must be a non-negative integer, got {self.index_max!r}")

    def branch_for(self, name: str) -> str:
        """Branch name for a new worktree called name."""
        return self.branch_pattern.replace("{name}", name)

    def to_dict(self) -> dict:
        """Convert config to the dictionary shape stored in .wt.yaml."""
        result = {
            "version": self.version,
            "worktree_dir": self.worktree_dir,
            "branch_pattern": self.branch_pattern,
        }
        if self.default_branch:
            result["default_branch"] = self.default_branch
        if self.index_max:
            result["index"] = {"max": self.index_max}
        result["hooks"] = self.hooks.to_dict()
        return result

    @classmethod
    def from_dict(cls, config_dict: Optional[dict]) -> "Config":
        """Create Config from the parsed YAML document."""
        config_dict = config_dict or {}
        index = config_dict.get("index") or {}
        if not isinstance(index, dict):
            raise ValueError("index must be a mapping")
        return cls(
            version=config_dict.get("version", 1) or 1,
            worktree_dir=config_dict.get("worktree_dir") or DEFAULT_WORKTREE_DIR,
            branch_pattern=config_dict.get("branch_pattern") or DEFAULT_BRANCH_PATTERN,
            default_branch=config_dict.get("default_branch") or "",
            index_max=index.get("max", 0) or 0,
            hooks=HooksConfig.from_dict(config_dict.get("hooks")),
        )


def get_config_path(repo_root: str) -> str:
    return os.path.join(repo_root, CONFIG_FILE_NAME)


def config_exists(repo_root: str) -> bool:
    """Check if a .wt.yaml file exists in the repository root."""
    return os.path.isfile(get_config_path(repo_root))


def load_config(repo_root: str, required: bool = False) -> Config:
    """Load .wt.yaml from the repository root.

    Args:
        repo_root: Main repository root
        required: Raise instead of returning defaults when the file is missing

    Raises:
        ConfigError: The file is missing (when required), unreadable or invalid
    """
    path = get_config_path(repo_root)
    if not os.path.isfile(path):
        if required:
            raise ConfigError(f"no {CONFIG_FILE_NAME} found in {repo_root}")
        return Config()

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
        return Config.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid {CONFIG_FILE_NAME}: {e}")
