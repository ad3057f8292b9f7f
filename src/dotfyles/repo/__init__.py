"""Local git repository management."""

from .git import GitRepo, classify_failure
from .manager import RepositoryManager
from .types import (
    CommitIdentity,
    Credentials,
    RepoState,
    SyncOutcome,
    SyncResult,
)

__all__ = [
    "CommitIdentity",
    "Credentials",
    "GitRepo",
    "RepoState",
    "RepositoryManager",
    "SyncOutcome",
    "SyncResult",
    "classify_failure",
]
