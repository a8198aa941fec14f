"""Git helpers used to guard deploys against uncommitted changes."""

import logging
import subprocess
from pathlib import Path

from .exceptions import SpaDeployGitError

logger = logging.getLogger(__name__)


def _git(pwd: Path, *args: str) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=pwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as e:
        raise SpaDeployGitError("git executable not found") from e
    except subprocess.CalledProcessError as e:
        message = (e.stderr or "").strip() or f"git {' '.join(args)} failed"
        raise SpaDeployGitError(message) from e
    return result.stdout


def get_git_changes(pwd: Path) -> str:
    """Return ``git status --porcelain`` output ("" for a clean tree)."""
    return _git(pwd, "status", "--porcelain").strip()


def get_git_sha(pwd: Path, short: bool = False) -> str:
    """Return the commit SHA of HEAD."""
    if short:
        return _git(pwd, "rev-parse", "--short", "HEAD").strip()
    return _git(pwd, "rev-parse", "HEAD").strip()
