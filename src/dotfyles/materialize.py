"""Produce the on-disk copy or link of each located entry."""

import logging
import os
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Tuple

from .errors import FilesystemError
from .manifest import EntryKind, LocatedEntry

logger = logging.getLogger(__name__)


class Action(Enum):
    COPIED = "copied"
    LINKED = "linked"
    EXISTS = "exists"
    MISSING = "missing"


@dataclass
class MaterializeReport:
    copied: List[Path] = field(default_factory=list)
    linked: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)
    missing: List[Path] = field(default_factory=list)
    failed: List[Tuple[Path, str]] = field(default_factory=list)

    @property
    def changed(self) -> int:
        return len(self.copied) + len(self.linked)


def copy_file(src: Path, dst: Path) -> None:
    """Copy contents and permission bits of src to dst."""
    try:
        if os.path.islink(dst):
            # Never write through a stale link in the sync dir.
            os.unlink(dst)
        shutil.copyfile(src, dst)
        shutil.copymode(src, dst)
    except OSError as e:
        raise FilesystemError(f"Error copying {src} to {dst}: {e}") from e


def link_directory(src: Path, dst: Path) -> bool:
    """Symlink dst to src unless something already sits at dst.

    Returns True if a link was created.
    """
    if os.path.lexists(dst):
        return False
    try:
        os.symlink(src, dst, target_is_directory=True)
    except OSError as e:
        raise FilesystemError(f"Error symlinking {src} to {dst}: {e}") from e
    return True


def materialize(entry: LocatedEntry) -> Action:
    """Materialize a single entry at entry.dest.

    Raises FilesystemError if the copy or link fails.
    """
    if entry.kind is EntryKind.MISSING:
        return Action.MISSING

    if entry.kind is EntryKind.DIRECTORY:
        if link_directory(entry.source, entry.dest):
            logger.info(f"Created symlink from {entry.source} to {entry.dest}")
            return Action.LINKED
        logger.warning(f"Already exists, leaving untouched: {entry.dest}")
        return Action.EXISTS

    copy_file(entry.source, entry.dest)
    logger.info(f"Copied file {entry.source} to {entry.dest}")
    return Action.COPIED


def materialize_all(entries: Iterable[LocatedEntry]) -> MaterializeReport:
    """Materialize every entry, logging and continuing past failures."""
    report = MaterializeReport()
    for entry in entries:
        try:
            action = materialize(entry)
        except FilesystemError as e:
            logger.error(str(e))
            report.failed.append((entry.source, str(e)))
            continue

        if action is Action.COPIED:
            report.copied.append(entry.dest)
        elif action is Action.LINKED:
            report.linked.append(entry.dest)
        elif action is Action.EXISTS:
            report.skipped.append(entry.dest)
        else:
            report.missing.append(entry.source)
    return report
