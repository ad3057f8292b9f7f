"""Ways to obtain the commit author identity."""

import logging
import os
from typing import Mapping, Optional, Sequence

import typer

from ..errors import IdentityRequiredError
from ..repo.types import CommitIdentity

logger = logging.getLogger(__name__)


class IdentityProvider:
    def get_identity(self) -> Optional[CommitIdentity]:
        raise NotImplementedError


class StaticIdentityProvider(IdentityProvider):
    """Identity from fixed values, e.g. CLI flags or the config file."""

    def __init__(self, name: Optional[str], email: Optional[str]):
        self.name = name
        self.email = email

    def get_identity(self) -> Optional[CommitIdentity]:
        if not self.name or not self.email:
            return None
        return CommitIdentity(self.name.strip(), self.email.strip())


class EnvIdentityProvider(IdentityProvider):
    NAME_VARS = ("DOTFYLES_AUTHOR_NAME", "GIT_AUTHOR_NAME")
    EMAIL_VARS = ("DOTFYLES_AUTHOR_EMAIL", "GIT_AUTHOR_EMAIL")

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ

    def _first(self, names: Sequence[str]) -> Optional[str]:
        for name in names:
            value = self.environ.get(name, "").strip()
            if value:
                return value
        return None

    def get_identity(self) -> Optional[CommitIdentity]:
        name = self._first(self.NAME_VARS)
        email = self._first(self.EMAIL_VARS)
        if name and email:
            return CommitIdentity(name, email)
        return None


class PromptIdentityProvider(IdentityProvider):
    """Ask on the terminal, pre-filling anything already known."""

    def __init__(
        self,
        default_name: Optional[str] = None,
        default_email: Optional[str] = None,
    ):
        self.default_name = default_name
        self.default_email = default_email

    def get_identity(self) -> Optional[CommitIdentity]:
        name = typer.prompt("Enter your Git username", default=self.default_name)
        email = typer.prompt("Enter your Git email", default=self.default_email)
        return CommitIdentity(str(name).strip(), str(email).strip())


class ChainIdentityProvider(IdentityProvider):
    """First provider yielding a complete identity wins."""

    def __init__(self, providers: Sequence[IdentityProvider]):
        self.providers = list(providers)

    def get_identity(self) -> Optional[CommitIdentity]:
        for provider in self.providers:
            identity = provider.get_identity()
            if identity and identity.complete:
                logger.debug(
                    f"Using commit identity from {type(provider).__name__}"
                )
                return identity
        return None


def require_identity(provider: IdentityProvider) -> CommitIdentity:
    identity = provider.get_identity()
    if identity is None or not identity.complete:
        raise IdentityRequiredError("Commit author name and email are required")
    return identity
