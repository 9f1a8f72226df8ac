"""
Skip-if-present gate shared by every fetch, clip and convert step.

Freshness is the operator's call: delete an artifact to force it to be
rebuilt. Contents are never validated here.
"""
import logging
import os

logger = logging.getLogger(__name__)


def exists(target: str) -> bool:
    return os.path.exists(target)


def already_built(target: str) -> bool:
    """``exists`` plus the skip notice the caller would otherwise log."""
    if exists(target):
        logger.info("- %s already exists", target)
        return True
    return False
