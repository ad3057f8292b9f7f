"""Shared helper functions for CLI commands."""

import logging
import shutil
from pathlib import Path
from typing import Optional

from ..auth import (
    ChainIdentityProvider,
    DeviceAuthClient,
    EnvIdentityProvider,
    PromptIdentityProvider,
    StaticIdentityProvider,
)
from ..auth.github import resolve_remote_url
from ..config import Config, get_config_path
from ..http import UrllibTransport
from ..manifest import build_manifest
from ..pipeline import Orchestrator
from ..system import Environment

# Global environment instance
env = Environment()
logger = logging.getLogger(__name__)


def get_config() -> Config:
    """Load config from ~/.dotfyles.yaml or ~/.dotfyles.yml."""
    return Config(get_config_path(env.home), env=env)


def get_dotfiles_dir(config: Config) -> Path:
    """Get the sync directory path from config."""
    return env.expand(str(config.get("dotfiles.dir")))


def is_git_available() -> bool:
    """Check if git is installed and accessible."""
    return shutil.which("git") is not None


def build_identity_provider(
    config: Config, interactive: bool = True
) -> ChainIdentityProvider:
    """Flags/config first, then environment, then an interactive prompt."""
    name = config.get("identity.name")
    email = config.get("identity.email")
    providers = [
        StaticIdentityProvider(name, email),
        EnvIdentityProvider(),
    ]
    if interactive:
        providers.append(PromptIdentityProvider(name, email))
    return ChainIdentityProvider(providers)


def build_orchestrator(
    config: Config,
    interactive: bool = True,
    transport: Optional[UrllibTransport] = None,
) -> Orchestrator:
    """Wire every component from the loaded config."""
    timeout = config.get_timeout()
    transport = transport or UrllibTransport(timeout=timeout)
    host = config.get("auth.host")
    api_url = config.get("auth.api_url")

    client = DeviceAuthClient(
        client_id=config.get("auth.client_id"),
        scope=config.get("auth.scope"),
        host=host,
        transport=transport,
    )

    def remote_url_for(token) -> str:
        url = config.get("remote.url")
        if url:
            return url
        return resolve_remote_url(
            transport,
            token,
            repo_name=config.get("remote.repo_name"),
            host=host,
            api_url=api_url,
            create=bool(config.get("remote.create")),
            private=bool(config.get("remote.private")),
        )

    manifest = build_manifest(
        extra=config.get_manifest_extra(),
        exclude=config.get_manifest_exclude(),
    )

    return Orchestrator(
        authenticate=client.authenticate,
        resolve_remote_url=remote_url_for,
        identity_provider=build_identity_provider(config, interactive),
        manifest=manifest,
        home=env.home,
        dotfiles_dir=get_dotfiles_dir(config),
        remote=config.get("remote.name"),
        branch=config.get("remote.branch"),
        timeout=timeout,
        message=config.get("commit.message"),
    )
