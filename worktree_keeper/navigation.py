"""Directory change signalling for the shell wrapper.

A process cannot change its parent shell's directory, so the wrapper
function exports WT_CD_FILE and cds to whatever path we leave in it.
"""

import os
from typing import Optional

from rich.console import Console
from rich.markup import escape

from worktree_keeper.constants import CD_FILE_ENV
from worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)


def request_cd(path: str, hint: str, console: Optional[Console] = None) -> bool:
    """Ask the shell wrapper to change into path.

    Args:
        path: Target directory
        hint: Trailing text of the fallback message, e.g. "to open your new worktree"
        console: Where to print the fallback hint

    Returns:
        True if the path was written to the WT_CD_FILE file
    """
    cd_file = os.environ.get(CD_FILE_ENV, "")
    if cd_file:
        fd = os.open(cd_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(path + "\n")
        logger.debug(f"Wrote {path} to {cd_file}")
        return True

    console = console or Console()
    console.print()
    console.print(f"Run `cd {escape(path)}` {hint}", soft_wrap=True)
    return False
