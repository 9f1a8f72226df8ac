"""Blocking execution of external tools."""
from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from typing import Sequence

from .errors import CommandFailedError, ToolNotFoundError

logger = logging.getLogger(__name__)


def run(cmd: Sequence[str]) -> None:
    """
    Run ``cmd`` and wait for it. STDOUT and STDERR are inherited, not captured.

    Raises:
        ToolNotFoundError: the command could not be spawned
        CommandFailedError: the command exited with a non-zero status
    """
    cmd = [os.fspath(arg) for arg in cmd]
    logger.info("- Running %s", shlex.join(cmd))
    try:
        completed = subprocess.run(cmd)
    except OSError as exc:
        raise ToolNotFoundError(cmd, reason=str(exc)) from exc
    if completed.returncode != 0:
        raise CommandFailedError(cmd, completed.returncode)


def rm(path: str) -> None:
    """Remove a file or directory tree. Be careful!"""
    logger.info("- Removing %s", path)
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    elif os.path.lexists(path):
        os.remove(path)
