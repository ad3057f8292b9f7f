"""Well-known dotfile locations and their classification on disk."""

import logging
import os
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class EntryKind(Enum):
    FILE = "file"
    DIRECTORY = "directory"
    MISSING = "missing"


@dataclass(frozen=True)
class ManifestEntry:
    """One candidate dotfile, relative to the home directory."""

    path: str
    kind: EntryKind = EntryKind.FILE

    @property
    def name(self) -> str:
        """Final path component, used as the name inside the sync dir."""
        return Path(self.path.rstrip("/")).name

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManifestEntry":
        """Build an entry from a config mapping like {path, directory}."""
        path = str(data["path"])
        is_dir = bool(data.get("directory", path.endswith("/")))
        return cls(path, EntryKind.DIRECTORY if is_dir else EntryKind.FILE)


@dataclass(frozen=True)
class LocatedEntry:
    source: Path
    dest: Path
    kind: EntryKind
    error: Optional[str] = None

    @property
    def exists(self) -> bool:
        return self.kind is not EntryKind.MISSING


def _f(path: str) -> ManifestEntry:
    return ManifestEntry(path, EntryKind.FILE)


def _d(path: str) -> ManifestEntry:
    return ManifestEntry(path, EntryKind.DIRECTORY)


DEFAULT_MANIFEST: Tuple[ManifestEntry, ...] = (
    _f(".bashrc"),
    _f(".bash_profile"),
    _f(".zshrc"),
    _f(".profile"),
    _f(".fish/config.fish"),
    _d(".config/fish/"),
    _f(".vimrc"),
    _d(".config/nvim/"),
    _f(".emacs.d/init.el"),
    _d(".config/helix/"),
    _f(".tmux.conf"),
    _d(".zellij/"),
    _d(".config/wezterm/"),
    _f(".wezterm.lua"),
    _d(".config/alacritty/"),
    _f(".alacritty.yml"),
    _d(".config/kitty/"),
    _f(".config/starship.toml"),
    _d(".config/i3/"),
    _d(".config/sway/"),
    _d(".config/hypr/"),
    _d(".config/xfce4/"),
    _f(".gitconfig"),
    _f(".gitignore_global"),
    _d(".config/ranger/"),
    _f(".config/picom.conf"),
    _d(".config/dunst/"),
    _d(".config/rofi"),
    _d(".config/swaylock"),
    _d(".ssh/config/"),
    _d(".config/gtk-3.0/"),
)


def build_manifest(
    extra: Iterable[Dict[str, Any]] = (),
    exclude: Iterable[str] = (),
    base: Sequence[ManifestEntry] = DEFAULT_MANIFEST,
) -> Tuple[ManifestEntry, ...]:
    """Combine the built-in manifest with user additions and exclusions.

    Exclusions match on the relative path with trailing slashes ignored.
    """
    excluded = {p.rstrip("/") for p in exclude}
    entries: List[ManifestEntry] = []
    seen = set()
    for entry in list(base) + [ManifestEntry.from_dict(e) for e in extra]:
        key = entry.path.rstrip("/")
        if key in excluded or key in seen:
            continue
        seen.add(key)
        entries.append(entry)
    return tuple(entries)


def locate(
    manifest: Sequence[ManifestEntry],
    home: Path,
    dest_dir: Path,
) -> List[LocatedEntry]:
    """Classify every manifest entry as file, directory, or missing.

    Never raises: unreadable paths are recorded as missing with the
    error message attached.
    """
    located = []
    for entry in manifest:
        source = Path(home) / entry.path.rstrip("/")
        dest = Path(dest_dir) / entry.name
        try:
            st = os.stat(source)
        except FileNotFoundError:
            logger.info(f"Not found: {source}")
            located.append(LocatedEntry(source, dest, EntryKind.MISSING))
            continue
        except OSError as e:
            logger.warning(f"Error checking path {source}: {e}")
            located.append(
                LocatedEntry(source, dest, EntryKind.MISSING, error=str(e))
            )
            continue

        if stat.S_ISDIR(st.st_mode):
            kind = EntryKind.DIRECTORY
        else:
            kind = EntryKind.FILE
        if kind is not entry.kind:
            logger.debug(
                f"{entry.path} declared as {entry.kind.value}, "
                f"found {kind.value}"
            )
        located.append(LocatedEntry(source, dest, kind))
    return located
