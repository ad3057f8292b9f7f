"""Exception hierarchy for dotfyles."""

from typing import Optional


class DotfylesError(Exception):
    """Base class for all dotfyles failures."""


class ProviderError(DotfylesError):
    """The auth provider returned something we could not use."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.body = body


class AuthorizationDenied(DotfylesError):
    """The user declined the device authorization request."""


class SessionExpired(DotfylesError):
    """The device code expired before the user authorized it."""


class NetworkError(DotfylesError):
    """An endpoint could not be reached or answered unexpectedly."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.body = body


class RepositoryError(DotfylesError):
    """A git operation failed."""


class AuthError(RepositoryError):
    """The remote refused our credentials."""


class RejectedError(RepositoryError):
    """The remote rejected a push (usually non-fast-forward)."""


class RemoteNotFoundError(RepositoryError):
    """The remote repository does not exist or is not visible to us."""


class NothingToCommitError(RepositoryError):
    """The working tree is clean."""


class IdentityRequiredError(RepositoryError):
    """Commit author name or email is missing."""


class FilesystemError(DotfylesError):
    """Copying or linking a single entry failed."""
