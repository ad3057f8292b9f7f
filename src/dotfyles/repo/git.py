"""Low-level git wrapper for the sync directory."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, Optional, Set

from ..errors import (
    AuthError,
    DotfylesError,
    IdentityRequiredError,
    NetworkError,
    NothingToCommitError,
    RejectedError,
    RemoteNotFoundError,
    RepositoryError,
)
from .types import CommitIdentity, Credentials, RepoState

logger = logging.getLogger(__name__)

# Hash of the empty tree, the diff base for an unborn branch.
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

AUTH_MARKERS = (
    "authentication failed",
    "could not read username",
    "could not read password",
    "invalid username or password",
    "permission denied",
    "the requested url returned error: 401",
    "the requested url returned error: 403",
)
NETWORK_MARKERS = (
    "could not resolve host",
    "failed to connect",
    "connection timed out",
    "connection refused",
    "network is unreachable",
    "operation timed out",
    "unable to access",
)
REJECT_MARKERS = (
    "[rejected]",
    "non-fast-forward",
    "fetch first",
    "updates were rejected",
    "[remote rejected]",
)
NOT_FOUND_MARKERS = (
    "repository not found",
    "does not appear to be a git repository",
    "the requested url returned error: 404",
)


def classify_failure(action: str, stderr: str) -> DotfylesError:
    """Turn git's stderr into the matching exception."""
    text = stderr.strip()
    lowered = text.lower()
    message = f"{action} failed: {text}" if text else f"{action} failed"
    if any(m in lowered for m in AUTH_MARKERS):
        return AuthError(message)
    if any(m in lowered for m in REJECT_MARKERS):
        return RejectedError(message)
    if any(m in lowered for m in NOT_FOUND_MARKERS):
        return RemoteNotFoundError(
            f"{message}\nThe remote repository does not exist or this "
            f"account cannot see it"
        )
    if any(m in lowered for m in NETWORK_MARKERS):
        return NetworkError(message)
    return RepositoryError(message)


class GitRepo:
    """A non-bare git repository rooted at ``path``."""

    def __init__(self, path: Path, timeout: float = 60):
        self.path = Path(path)
        self.timeout = timeout

    @property
    def git_dir(self) -> Path:
        return self.path / ".git"

    def _env(
        self,
        credentials: Optional[Credentials] = None,
        extra: Optional[Dict[str, str]] = None,
    ) -> Dict[str, str]:
        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        if credentials is not None:
            # Passed through the environment so the token never lands in
            # .git/config or the process argument list.
            env["GIT_CONFIG_COUNT"] = "1"
            env["GIT_CONFIG_KEY_0"] = "http.extraHeader"
            env["GIT_CONFIG_VALUE_0"] = credentials.auth_header()
        if extra:
            env.update(extra)
        return env

    def run(
        self,
        *args,
        check: bool = True,
        timeout: Optional[float] = None,
        credentials: Optional[Credentials] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        """Run a git command inside the repository.

        Args:
            *args: Git command arguments (e.g., "status", "--porcelain")
            check: If True, raise CalledProcessError on non-zero exit
            timeout: Command timeout in seconds (defaults to self.timeout)
            credentials: Basic auth for remote operations
            env: Extra environment variables

        Returns:
            CompletedProcess with stdout/stderr captured as text
        """
        cmd = ["git"] + list(args)
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout or self.timeout,
            check=check,
            cwd=str(self.path),
            env=self._env(credentials, env),
        )

    def _run_remote(
        self, action: str, *args, credentials: Optional[Credentials] = None
    ) -> subprocess.CompletedProcess:
        try:
            result = self.run(*args, check=False, credentials=credentials)
        except subprocess.TimeoutExpired as e:
            raise NetworkError(f"{action} timed out after {e.timeout}s") from e
        if result.returncode != 0:
            raise classify_failure(action, result.stderr)
        return result

    # Lifecycle

    def exists(self) -> bool:
        return self.git_dir.exists()

    def state(self, remote: str = "origin", branch: str = "main") -> RepoState:
        if not self.exists():
            return RepoState.ABSENT
        if self.get_remote_url(remote) is None:
            return RepoState.INITIALIZED
        if not self.remote_branch_exists(remote, branch):
            return RepoState.REMOTE_CONFIGURED
        return RepoState.SYNCED

    def ensure_initialized(self, branch: str = "main") -> bool:
        """Create the repository if missing. Returns True if created."""
        if self.exists():
            logger.info(f"Git repository already exists at {self.path}")
            return False

        self.path.mkdir(parents=True, exist_ok=True)
        try:
            self.run("init", f"--initial-branch={branch}")
        except subprocess.CalledProcessError as e:
            raise RepositoryError(
                f"Error initializing git repo: {e.stderr.strip()}"
            ) from e
        logger.info(f"Initialized git repository at {self.path}")
        return True

    def get_remote_url(self, name: str) -> Optional[str]:
        result = self.run("remote", "get-url", name, check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def ensure_remote(self, name: str, url: str) -> bool:
        """Add the remote unless one with this name exists.

        An existing remote is reused as-is, even if its URL differs.
        Returns True if the remote was created.
        """
        existing = self.get_remote_url(name)
        if existing is not None:
            if existing != url:
                logger.info(
                    f"Remote '{name}' already points at {existing}; "
                    f"keeping it"
                )
            else:
                logger.info(f"Remote '{name}' already exists. Reusing it.")
            return False

        try:
            self.run("remote", "add", name, url)
        except subprocess.CalledProcessError as e:
            raise RepositoryError(
                f"Error creating remote: {e.stderr.strip()}"
            ) from e
        logger.info(f"Remote '{name}' created for {url}")
        return True

    # Remote operations

    def fetch(
        self, remote: str = "origin", credentials: Optional[Credentials] = None
    ) -> None:
        """Fetch from the remote. Being already up to date is fine."""
        self._run_remote("fetch", "fetch", remote, credentials=credentials)
        logger.info(f"Fetched from {remote}")

    def push(
        self,
        remote: str = "origin",
        credentials: Optional[Credentials] = None,
        branch: Optional[str] = None,
    ) -> None:
        """Push the current branch. Never forces."""
        branch = branch or self.current_branch()
        if not branch:
            raise RepositoryError("Cannot push: HEAD is detached")
        self._run_remote(
            "push",
            "push",
            "--set-upstream",
            remote,
            f"HEAD:refs/heads/{branch}",
            credentials=credentials,
        )
        logger.info(f"Pushed to {remote}/{branch}")

    # Branch inspection

    def current_branch(self) -> Optional[str]:
        result = self.run("symbolic-ref", "--short", "HEAD", check=False)
        if result.returncode == 0:
            return result.stdout.strip()
        return None

    def has_commits(self) -> bool:
        result = self.run("rev-parse", "--verify", "-q", "HEAD", check=False)
        return result.returncode == 0

    def remote_branch_exists(self, remote: str, branch: str) -> bool:
        result = self.run(
            "show-ref",
            "--verify",
            "-q",
            f"refs/remotes/{remote}/{branch}",
            check=False,
        )
        return result.returncode == 0

    def commits_ahead(self, remote: str, branch: str) -> int:
        """Local commits not yet on the remote branch."""
        if not self.has_commits():
            return 0
        if self.remote_branch_exists(remote, branch):
            rev_range = f"{remote}/{branch}..HEAD"
        else:
            rev_range = "HEAD"
        result = self.run("rev-list", "--count", rev_range, check=False)
        try:
            return int(result.stdout.strip())
        except ValueError:
            return 0

    def _changed_locally(self) -> Set[str]:
        """Paths in the working tree that differ from HEAD (or all, if unborn)."""
        paths: Set[str] = set()
        if self.has_commits():
            result = self.run("diff", "--name-only", "HEAD", check=False)
        else:
            result = self.run("ls-files", check=False)
        paths.update(p for p in result.stdout.splitlines() if p)
        others = self.run(
            "ls-files", "--others", "--exclude-standard", check=False
        )
        paths.update(p for p in others.stdout.splitlines() if p)
        return paths

    def fast_forward(self, remote: str, branch: str) -> bool:
        """Move the local branch to the remote tip if that is a fast-forward.

        Works with a dirty working tree: paths changed locally keep their
        local content and will show up as changes on top of the remote tip,
        every other path is updated to match the remote. An unborn branch
        starts from the remote tip. A diverged branch is left alone.
        Returns True if HEAD moved.
        """
        if not self.remote_branch_exists(remote, branch):
            return False
        upstream = f"{remote}/{branch}"

        if self.has_commits():
            behind = self.run(
                "merge-base", "--is-ancestor", "HEAD", upstream, check=False
            )
            if behind.returncode != 0:
                return False
            heads = self.run("rev-parse", "HEAD", upstream, check=False)
            shas = heads.stdout.split()
            if len(shas) == 2 and shas[0] == shas[1]:
                return False
            base = "HEAD"
        else:
            base = EMPTY_TREE

        local = self._changed_locally()
        diff = self.run(
            "diff", "--name-status", "--no-renames", base, upstream,
            check=False,
        )
        if diff.returncode != 0:
            raise classify_failure("fast-forward", diff.stderr)

        for args in (
            ("update-ref", "HEAD", upstream),
            ("read-tree", upstream),
        ):
            result = self.run(*args, check=False)
            if result.returncode != 0:
                raise classify_failure("fast-forward", result.stderr)

        restore = []
        for line in diff.stdout.splitlines():
            status, _, path = line.partition("\t")
            if not path or path in local:
                continue
            if status.startswith("D"):
                target = self.path / path
                if os.path.lexists(target):
                    os.unlink(target)
            else:
                restore.append(path)

        if restore:
            result = self.run(
                "checkout", "-q", upstream, "--", *restore, check=False
            )
            if result.returncode != 0:
                raise classify_failure("checkout", result.stderr)

        self.run("branch", "-q", f"--set-upstream-to={upstream}", check=False)
        kept = sorted(local)
        if kept:
            logger.info(f"Kept local versions of: {', '.join(kept)}")
        logger.info(f"Fast-forwarded {branch} to {upstream}")
        return True

    # Working tree

    def stage_all(self) -> None:
        try:
            self.run("add", "-A")
        except subprocess.CalledProcessError as e:
            raise RepositoryError(
                f"Error adding files to staging area: {e.stderr.strip()}"
            ) from e
        logger.info(f"Staged all files in {self.path}")

    def is_clean(self) -> bool:
        result = self.run("status", "--porcelain", check=False)
        if result.returncode != 0:
            raise RepositoryError(
                f"Error checking worktree status: {result.stderr.strip()}"
            )
        return not result.stdout.strip()

    def head(self) -> Optional[str]:
        result = self.run("rev-parse", "HEAD", check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def commit(self, message: str, identity: CommitIdentity) -> str:
        """Commit whatever is staged and return the new commit hash."""
        if identity is None or not identity.complete:
            raise IdentityRequiredError(
                "Commit author name and email are required"
            )
        if self.is_clean():
            raise NothingToCommitError("Nothing to commit; working tree clean")

        author = {
            "GIT_AUTHOR_NAME": identity.name,
            "GIT_AUTHOR_EMAIL": identity.email,
            "GIT_COMMITTER_NAME": identity.name,
            "GIT_COMMITTER_EMAIL": identity.email,
        }
        result = self.run("commit", "-q", "-m", message, check=False, env=author)
        if result.returncode != 0:
            output = result.stdout + result.stderr
            if "nothing to commit" in output or "nothing added" in output:
                raise NothingToCommitError("Nothing staged to commit")
            raise RepositoryError(
                f"Error committing files: {result.stderr.strip()}"
            )

        sha = self.head()
        logger.info(f"Committed files with commit hash {sha}")
        return sha
