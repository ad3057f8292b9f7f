"""Runs the full bootstrap: authenticate, collect dotfiles, commit, push."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence

from .auth.device import AccessToken
from .auth.identity import IdentityProvider, require_identity
from .errors import DotfylesError, RepositoryError
from .manifest import ManifestEntry, locate
from .materialize import MaterializeReport, materialize_all
from .repo import Credentials, RepositoryManager, RepoState, SyncResult

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    dotfiles_dir: Path
    remote_url: Optional[str] = None
    repo_state: Optional[RepoState] = None
    materialized: Optional[MaterializeReport] = None
    sync: Optional[SyncResult] = None
    errors: list = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Orchestrator:
    """Sequences the components of one bootstrap run.

    authenticate → prepare directory → init/remote → materialize →
    fetch/fast-forward → commit → push. An authentication failure aborts
    before anything touches disk; per-entry filesystem failures are
    collected and skipped.
    """

    def __init__(
        self,
        authenticate: Callable[[], AccessToken],
        resolve_remote_url: Callable[[AccessToken], str],
        identity_provider: IdentityProvider,
        manifest: Sequence[ManifestEntry],
        home: Path,
        dotfiles_dir: Path,
        remote: str = "origin",
        branch: str = "main",
        timeout: float = 60,
        message: Optional[str] = None,
    ):
        self.authenticate = authenticate
        self.resolve_remote_url = resolve_remote_url
        self.identity_provider = identity_provider
        self.manifest = tuple(manifest)
        self.home = Path(home)
        self.dotfiles_dir = Path(dotfiles_dir)
        self.message = message
        self.repo = RepositoryManager(
            self.dotfiles_dir, remote=remote, branch=branch, timeout=timeout
        )

    def prepare_directory(self) -> None:
        try:
            self.dotfiles_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RepositoryError(
                f"Error creating dotfiles directory {self.dotfiles_dir}: {e}"
            ) from e
        logger.info(f"dotfiles directory ready at {self.dotfiles_dir}")

    def collect(self, result: PipelineResult) -> None:
        entries = locate(self.manifest, self.home, self.dotfiles_dir)
        result.materialized = materialize_all(entries)
        if result.materialized.failed:
            logger.warning(
                f"{len(result.materialized.failed)} entries could not be "
                f"materialized"
            )

    def run(self) -> PipelineResult:
        """Run every step, stopping at the first unrecoverable failure.

        Authentication errors propagate unchanged. Files are collected
        before any network call, so a failed fetch or push still leaves
        them in the sync directory. Repository errors are recorded on the
        result.
        """
        result = PipelineResult(dotfiles_dir=self.dotfiles_dir)

        token = self.authenticate()
        logger.info("Authentication successful")
        credentials = Credentials.from_token(token)
        result.remote_url = self.resolve_remote_url(token)

        self.prepare_directory()

        try:
            result.repo_state = self.repo.setup(result.remote_url)
        except DotfylesError as e:
            logger.error(f"Repository setup failed: {e}")
            result.errors.append(e)

        self.collect(result)
        if result.errors:
            return result

        try:
            result.repo_state = self.repo.sync_remote(credentials)
        except DotfylesError as e:
            logger.error(f"Fetching from remote failed: {e}")
            result.errors.append(e)
            return result

        try:
            identity = require_identity(self.identity_provider)
            result.sync = self.repo.commit_and_push(
                identity, credentials, message=self.message
            )
        except DotfylesError as e:
            logger.error(f"Sync failed: {e}")
            result.errors.append(e)
            return result

        result.repo_state = self.repo.state()
        return result
