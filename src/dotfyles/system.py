import os
from pathlib import Path
from typing import Optional


class Environment:
    """Provides info about the current user environment."""

    def __init__(self, home: Optional[Path] = None):
        self.home = Path(home) if home else Path.home()
        self.user = (
            os.environ.get("USER")
            or os.environ.get("LOGNAME")
            or self.home.name
        )

    def expand(self, path: str) -> Path:
        """Resolve a config path against this environment's home."""
        if path == "~":
            return self.home
        if path.startswith("~/"):
            return self.home / path[2:]
        p = Path(path)
        if not p.is_absolute():
            return self.home / p
        return p

    def __repr__(self) -> str:
        return f"Environment(home={self.home}, user={self.user})"
