"""Value types shared by the repository layer."""

import base64
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RepoState(Enum):
    ABSENT = "absent"
    INITIALIZED = "initialized"
    REMOTE_CONFIGURED = "remote_configured"
    SYNCED = "synced"


@dataclass(frozen=True)
class CommitIdentity:
    name: str
    email: str

    @property
    def complete(self) -> bool:
        return bool(self.name.strip()) and bool(self.email.strip())


@dataclass(frozen=True)
class Credentials:
    """HTTP Basic credentials for the git smart-HTTP transport."""

    username: str
    password: str

    @classmethod
    def from_token(cls, token) -> "Credentials":
        return cls("oauth2", getattr(token, "value", token))

    def auth_header(self) -> str:
        raw = f"{self.username}:{self.password}".encode()
        return "Authorization: Basic " + base64.b64encode(raw).decode()

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password=***)"


class SyncOutcome(Enum):
    PUSHED = "pushed"
    NOTHING_TO_PUSH = "nothing_to_push"


@dataclass
class SyncResult:
    outcome: SyncOutcome
    commit: Optional[str] = None
    branch: Optional[str] = None
