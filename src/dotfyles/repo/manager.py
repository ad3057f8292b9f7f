"""Idempotent synchronization sequence for the sync directory."""

import logging
from pathlib import Path
from typing import Optional

from ..errors import IdentityRequiredError, NothingToCommitError
from .git import GitRepo
from .types import CommitIdentity, Credentials, RepoState, SyncOutcome, SyncResult

logger = logging.getLogger(__name__)

INITIAL_COMMIT_MESSAGE = "Initial commit"
UPDATE_COMMIT_MESSAGE = "Update dotfiles"


class RepositoryManager:
    """Drives a GitRepo through Absent → Initialized → RemoteConfigured → Synced.

    Every step is safe to repeat: an existing repository, remote, or
    up-to-date fetch is reused rather than treated as an error.
    Credentials are passed per call and never stored on the instance.
    """

    def __init__(
        self,
        path: Path,
        remote: str = "origin",
        branch: str = "main",
        timeout: float = 60,
    ):
        self.git = GitRepo(path, timeout=timeout)
        self.remote = remote
        self.branch = branch

    @property
    def path(self) -> Path:
        return self.git.path

    def state(self) -> RepoState:
        return self.git.state(self.remote, self.branch)

    def setup(self, url: str) -> RepoState:
        """Create the repository and register the remote. Purely local."""
        self.git.ensure_initialized(self.branch)
        self.git.ensure_remote(self.remote, url)
        return self.state()

    def sync_remote(self, credentials: Credentials) -> RepoState:
        """Fetch and fast-forward onto the remote branch if possible.

        Must run before any staging so local commits land on top of
        existing remote history. Files already in the working tree are
        kept.
        """
        self.git.fetch(self.remote, credentials)
        self.git.fast_forward(self.remote, self.branch)
        return self.state()

    def prepare(self, url: str, credentials: Credentials) -> RepoState:
        """setup() followed by sync_remote()."""
        self.setup(url)
        return self.sync_remote(credentials)

    def default_message(self) -> str:
        if self.git.has_commits():
            return UPDATE_COMMIT_MESSAGE
        return INITIAL_COMMIT_MESSAGE

    def commit_and_push(
        self,
        identity: CommitIdentity,
        credentials: Credentials,
        message: Optional[str] = None,
    ) -> SyncResult:
        """Stage everything, commit if dirty, and push.

        A clean tree with nothing ahead of the remote ends with
        NOTHING_TO_PUSH and makes no network call.
        """
        if identity is None or not identity.complete:
            raise IdentityRequiredError(
                "Commit author name and email are required"
            )

        message = message or self.default_message()
        self.git.stage_all()

        sha = None
        try:
            sha = self.git.commit(message, identity)
        except NothingToCommitError:
            ahead = self.git.commits_ahead(self.remote, self.branch)
            if not ahead:
                logger.info("No changes to push; repository is up-to-date.")
                return SyncResult(
                    SyncOutcome.NOTHING_TO_PUSH, branch=self.branch
                )
            logger.info(f"Working tree clean but {ahead} commit(s) unpushed")

        self.git.push(self.remote, credentials, self.branch)
        return SyncResult(
            SyncOutcome.PUSHED, commit=sha or self.git.head(), branch=self.branch
        )
