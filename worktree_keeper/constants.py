"""Shared constants for worktree-keeper."""

# ANSI sequences embedded in rendered status strings
BOLD = "\033[1m"
RESET = "\033[0m"

# Symbol constants
SYMBOL_AHEAD = "↑"
SYMBOL_BEHIND = "↓"
MARKER_CURRENT = "* "
MARKER_OTHER = "  "

# Repository configuration file, relative to the repository root
CONFIG_FILE_NAME = ".wt.yaml"

# User configuration, relative to the home directory
USER_CONFIG_DIR = ".config/wt"
USER_CONFIG_FILE = "config.yaml"

# Per-worktree metadata keys (stored in <common-dir>/worktrees/<name>/config)
META_INDEX = "wt.index"
META_CREATED_AT = "wt.createdAt"
META_INITIAL_COMMIT = "wt.initialCommit"

# Repository-level key template for the last successful fetch per remote
LAST_FETCH_KEY = "wt.{remote}.lastFetch"

DEFAULT_WORKTREE_DIR = "worktrees"
DEFAULT_BRANCH_PATTERN = "{name}"
DEFAULT_FETCH_INTERVAL = "5m"
FETCH_INTERVAL_NEVER = "never"

# Number of merge commits scanned when attributing pull requests
MERGE_SCAN_LIMIT = 100

# Environment variable naming a file the shell wrapper reads to change directory
CD_FILE_ENV = "WT_CD_FILE"

SEPARATOR_WIDTH = 80
