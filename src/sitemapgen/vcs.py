"""Git integration for last-commit timestamps."""

import logging
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 30


def _run_git(cwd: Path, *args: str) -> tuple[bool, str]:
    """Run a git command.

    Args:
        cwd: Working directory for the command
        *args: Git command arguments

    Returns:
        Tuple of (success, output)
    """
    try:
        result = subprocess.run(
            ["git", "-C", str(cwd)] + list(args), capture_output=True, text=True, timeout=GIT_TIMEOUT
        )

        success = result.returncode == 0
        output = result.stdout if success else result.stderr

        return success, output.strip()

    except subprocess.TimeoutExpired:
        logger.debug("Git command timed out")
        return False, "Command timed out"
    except OSError as e:
        logger.debug(f"Git command failed: {e}")
        return False, str(e)


def git_last_commit_time(path: Path) -> Optional[datetime]:
    """Get the committer time of the last commit touching a file.

    Args:
        path: File to look up

    Returns:
        Timezone-aware datetime, or None when git is unavailable, the file
        is untracked or the output cannot be parsed
    """
    path = Path(path)
    success, output = _run_git(path.parent, "log", "-1", "--pretty=format:%cI", "--", path.name)
    if not success or not output:
        return None

    try:
        return datetime.fromisoformat(output.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable git date for {path}: {output!r}")
        return None
