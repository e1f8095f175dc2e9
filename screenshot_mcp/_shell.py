"""Process execution and tool probing, the only way adapters touch the OS shell."""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Sequence

from screenshot_mcp.errors import ExternalToolFailure

logger = logging.getLogger(__name__)


class CommandRunner:
    """Run native tools and check whether they are installed.

    Adapters receive an instance so tests can swap in canned outputs.
    No timeout is applied: a hung tool hangs the calling operation.
    """

    def run(self, args: Sequence[str]) -> str:
        """Run ``args`` and return stdout.

        Raises:
            ExternalToolFailure: the program is missing, cannot start or
                exits non-zero.
        """
        args = [str(a) for a in args]
        logger.debug("run: %s", " ".join(args[:4]))
        try:
            proc = subprocess.run(
                args,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise ExternalToolFailure(args, reason=f"could not be started ({e})") from e
        if proc.returncode != 0:
            raise ExternalToolFailure(args, proc.returncode, proc.stderr)
        return proc.stdout

    def exists(self, command: str) -> bool:
        """PATH lookup for ``command``; never raises."""
        try:
            return shutil.which(command) is not None
        except Exception:
            return False
