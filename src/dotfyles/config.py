from __future__ import annotations

import copy
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import yaml

if TYPE_CHECKING:
    from .system import Environment

# Supported config filenames (in order of preference)
CONFIG_FILENAMES: List[str] = [".dotfyles.yaml", ".dotfyles.yml"]

DEFAULT_CLIENT_ID = "Ov23liNHy37PEdYFK4Jf"


class Config:
    """Configuration manager for dotfyles.

    Values come from the built-in defaults, deep-updated with the user's
    YAML file when one exists.
    """

    DEFAULT_CONFIG = {
        "vars": {},
        "dotfiles": {"dir": "~/dotfyles"},
        "remote": {
            "name": "origin",
            "url": None,
            "repo_name": "dotfyles",
            "branch": "main",
            "create": True,
            "private": True,
        },
        "auth": {
            "client_id": DEFAULT_CLIENT_ID,
            "scope": "repo",
            "host": "https://github.com",
            "api_url": "https://api.github.com",
        },
        "identity": {"name": None, "email": None},
        "manifest": {"extra": [], "exclude": []},
        "network": {"timeout": 60},
        "commit": {"message": None},
    }

    def __init__(
        self,
        config_path: Optional[Path] = None,
        env: Optional[Environment] = None,
    ):
        # Use deepcopy to avoid mutating the class-level DEFAULT_CONFIG
        self.data = copy.deepcopy(self.DEFAULT_CONFIG)
        self.env = env
        self.path = config_path

        if config_path and config_path.exists():
            with open(config_path, "r") as f:
                user_config = yaml.safe_load(f)
                if user_config:
                    if not isinstance(user_config, dict):
                        raise ValueError(
                            f"{config_path}: expected a mapping at top level"
                        )
                    self._deep_update(self.data, user_config)

        if self.env:
            self._apply_replacements(self.data)

    def _deep_update(self, base: Dict, update: Dict):
        for k, v in update.items():
            if isinstance(v, dict) and k in base and isinstance(base[k], dict):
                self._deep_update(base[k], v)
            else:
                base[k] = v

    def _apply_replacements(self, data: Any):
        """Replace {local_user} and custom vars in the config data."""
        replacements = {"local_user": self.env.user if self.env else "user"}
        if "vars" in self.data and isinstance(self.data["vars"], dict):
            replacements.update(self.data["vars"])
        self._walk_and_format(data, replacements)

    def _walk_and_format(self, data: Any, replacements: Dict[str, str]):
        if isinstance(data, dict):
            items = list(data.items())
        elif isinstance(data, list):
            items = list(enumerate(data))
        else:
            return
        for k, v in items:
            if isinstance(v, (dict, list)):
                self._walk_and_format(v, replacements)
            elif isinstance(v, str):
                try:
                    data[k] = v.format(**replacements)
                except (KeyError, IndexError, ValueError):
                    pass

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get a config value by dot-separated path."""
        keys = key_path.split(".")
        value = self.data
        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key_path: str, value: Any) -> None:
        """Set a config value by dot-separated path, creating sections."""
        keys = key_path.split(".")
        node = self.data
        for key in keys[:-1]:
            if not isinstance(node.get(key), dict):
                node[key] = {}
            node = node[key]
        node[keys[-1]] = value

    def get_timeout(self) -> float:
        """Network timeout in seconds for HTTP requests and git transport."""
        timeout = self.get("network.timeout", 60)
        try:
            timeout = float(timeout)
        except (TypeError, ValueError):
            return 60.0
        return timeout if timeout > 0 else 60.0

    def get_manifest_extra(self) -> List[Dict[str, Any]]:
        """User-declared manifest entries as raw mappings."""
        extra = self.get("manifest.extra", [])
        if not isinstance(extra, list):
            return []
        return [e for e in extra if isinstance(e, dict) and e.get("path")]

    def get_manifest_exclude(self) -> List[str]:
        """Relative paths the user does not want collected."""
        exclude = self.get("manifest.exclude", [])
        if not isinstance(exclude, list):
            return []
        return [str(e) for e in exclude]


def get_config_path(home: Path) -> Path:
    """Find the config file path, checking both .yaml and .yml extensions.

    Returns the first existing config file, or the default (.dotfyles.yaml)
    if none exist yet.
    """
    for filename in CONFIG_FILENAMES:
        path = home / filename
        if path.exists():
            return path
    return home / CONFIG_FILENAMES[0]
