"""
Git Integration — Repository root discovery for project identity

The project resolver asks version control first. Probing is behind a tiny
capability so it can be swapped or disabled:
- GitProbe: runs `git rev-parse --show-toplevel`
- NullProbe: never finds a root (marker walk and cwd take over)
"""

import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional


class VcsProbe(ABC):
    """Capability: find the repository root containing a directory."""

    @abstractmethod
    def toplevel(self, directory: Path) -> Optional[Path]:
        pass


class NullProbe(VcsProbe):
    """Probe that never finds a repository."""

    def toplevel(self, directory: Path) -> Optional[Path]:
        return None


class GitProbe(VcsProbe):
    """Git repository root lookup."""

    def __init__(self, git_binary: str = "git", timeout: float = 5.0):
        """
        Args:
            git_binary: Executable to invoke
            timeout: Seconds before a hung git call is abandoned
        """
        self.git_binary = git_binary
        self.timeout = timeout

    def _run_git(self, args: List[str], cwd: Path) -> Optional[str]:
        """Run a git command and return stdout, None on any failure."""
        try:
            result = subprocess.run(
                [self.git_binary] + args,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True
            )
            return result.stdout
        except subprocess.CalledProcessError:
            return None
        except (subprocess.SubprocessError, OSError):
            return None

    def toplevel(self, directory: Path) -> Optional[Path]:
        """
        Repository root for directory.

        Success requires a zero exit status and non-empty output.
        """
        directory = Path(directory)
        if not directory.is_dir():
            return None

        output = self._run_git(["rev-parse", "--show-toplevel"], cwd=directory)
        if not output or not output.strip():
            return None
        return Path(output.strip())
