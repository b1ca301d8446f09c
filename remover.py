# remover.py
"""
Deleting books from the library.

A delete is two steps: a plain os.remove, then (only if that was refused)
one run of the privileged delete command. The result of those steps is a
DeleteOutcome; `delete_book` turns a FAILED outcome into a DeletionError,
`delete_books` just counts them.
"""

import logging
import os
import subprocess

import config
from errors import DeletionError
from models import BulkDeleteResult, DeleteOutcome, DeleteStatus

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------------
def sibling_path(filepath: str):
    """The .mobi twin of an .epub path, or None for anything else."""
    if filepath.endswith(".epub"):
        return filepath[: -len(".epub")] + ".mobi"
    return None


def _remove(filepath: str):
    try:
        os.remove(filepath)
    except FileNotFoundError:
        pass  # already gone counts as deleted


def _privileged_remove(filepath: str):
    cmd = config.PRIVILEGED_DELETE_COMMAND + [filepath]
    try:
        subprocess.run(
            cmd,
            check=True,
            capture_output=True,
            text=True,
            timeout=config.DELETE_TIMEOUT,
        )
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise OSError(stderr or f"{cmd[0]} exited with status {e.returncode}") from e
    except subprocess.TimeoutExpired as e:
        raise OSError(f"{cmd[0]} timed out after {e.timeout}s") from e


def _remove_sibling(filepath: str):
    mobi = sibling_path(filepath)
    if not mobi:
        return
    try:
        if os.path.lexists(mobi):
            _remove(mobi)
            logger.info("Also deleted MOBI: %s", mobi)
    except OSError as e:
        logger.warning("Could not delete MOBI sibling %s: %s", mobi, e)


# ------------------------------------------------------------------------
def attempt_delete(filepath: str) -> DeleteOutcome:
    """Run both delete steps and report which one (if any) worked."""
    try:
        _remove(filepath)
        status = DeleteStatus.DELETED
        logger.info("Deleted: %s", filepath)
    except OSError as first:
        logger.warning("Plain delete of %s failed (%s), retrying privileged", filepath, first)
        try:
            _privileged_remove(filepath)
        except OSError as second:
            logger.error("Privileged delete of %s failed: %s", filepath, second)
            return DeleteOutcome(filepath, DeleteStatus.FAILED, second)
        status = DeleteStatus.ESCALATED
        logger.info("Deleted with privileges: %s", filepath)

    _remove_sibling(filepath)
    return DeleteOutcome(filepath, status)


def delete_book(filepath: str) -> DeleteOutcome:
    outcome = attempt_delete(filepath)
    if not outcome.ok:
        raise DeletionError(filepath, outcome.error)
    return outcome


def delete_books(filepaths) -> BulkDeleteResult:
    """Delete every path independently; failures only show up in the counts."""
    logger.info("Bulk deleting %d files...", len(filepaths))
    deleted = failed = 0
    for path in filepaths:
        if attempt_delete(path).ok:
            deleted += 1
        else:
            failed += 1
    logger.info("Deleted %d files, %d failed", deleted, failed)
    return BulkDeleteResult(deleted=deleted, failed=failed)
