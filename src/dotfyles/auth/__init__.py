"""Authentication: device flow and commit identity."""

from .device import AccessToken, DeviceAuthClient, DeviceAuthSession, PollState
from .identity import (
    ChainIdentityProvider,
    EnvIdentityProvider,
    IdentityProvider,
    PromptIdentityProvider,
    StaticIdentityProvider,
    require_identity,
)

__all__ = [
    "AccessToken",
    "ChainIdentityProvider",
    "DeviceAuthClient",
    "DeviceAuthSession",
    "EnvIdentityProvider",
    "IdentityProvider",
    "PollState",
    "PromptIdentityProvider",
    "StaticIdentityProvider",
    "require_identity",
]
