"""OAuth2 device authorization grant (RFC 8628) against GitHub."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

import typer

from ..errors import (
    AuthorizationDenied,
    NetworkError,
    ProviderError,
    SessionExpired,
)
from ..http import HttpResponse, UrllibTransport

logger = logging.getLogger(__name__)

DEVICE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"
DEFAULT_INTERVAL = 5
DEFAULT_EXPIRES_IN = 900
SLOW_DOWN_INCREMENT = 5


class PollState(Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    EXPIRED = "expired"


class AccessToken:
    """Bearer token for one run. The secret never appears in repr()."""

    __slots__ = ("value",)

    def __init__(self, value: str):
        if not value:
            raise ValueError("empty access token")
        self.value = value

    def __repr__(self) -> str:
        return f"AccessToken({self.value[:4]}…)"

    __str__ = __repr__

    def __eq__(self, other) -> bool:
        return isinstance(other, AccessToken) and other.value == self.value

    def __hash__(self) -> int:
        return hash(self.value)


@dataclass
class DeviceAuthSession:
    device_code: str
    user_code: str
    verification_uri: str
    interval: int
    expires_at: float
    announced: bool = False

    def widen_interval(self, interval: Optional[int] = None) -> None:
        """Apply the provider's slow_down signal. Never shrinks."""
        new = interval if interval else self.interval + SLOW_DOWN_INCREMENT
        self.interval = max(self.interval, new)


def _int_field(payload: Dict[str, str], key: str, default: int) -> int:
    raw = payload.get(key)
    if raw in (None, ""):
        logger.debug(f"No {key} in device response, using default {default}")
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ProviderError(f"Invalid {key} in device response: {raw!r}")


def _default_notify(session: DeviceAuthSession) -> None:
    typer.echo(
        f"Please go to {session.verification_uri} "
        f"and enter the code: {session.user_code}"
    )


class DeviceAuthClient:
    """Runs the device flow and returns an AccessToken.

    Clock, sleep and HTTP transport are injectable so the polling loop
    can be driven without real delays or network.
    """

    def __init__(
        self,
        client_id: str,
        scope: str = "repo",
        host: str = "https://github.com",
        transport=None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        notify: Callable[[DeviceAuthSession], None] = _default_notify,
    ):
        self.client_id = client_id
        self.scope = scope
        self.host = host.rstrip("/")
        self.transport = transport or UrllibTransport()
        self.clock = clock
        self.sleep = sleep
        self.notify = notify

    @property
    def device_code_url(self) -> str:
        return f"{self.host}/login/device/code"

    @property
    def token_url(self) -> str:
        return f"{self.host}/login/oauth/access_token"

    def request_device_session(self) -> DeviceAuthSession:
        resp = self.transport.post(
            self.device_code_url,
            data={"client_id": self.client_id, "scope": self.scope},
            headers={"Accept": "application/json"},
        )
        if resp.status != 200:
            raise ProviderError(
                f"Device code request failed: {resp.status} - {resp.body}",
                status=resp.status,
                body=resp.body,
            )

        try:
            payload = resp.payload()
        except ValueError as e:
            raise ProviderError(
                f"Could not parse device code response: {e}",
                status=resp.status,
                body=resp.body,
            ) from e

        missing = [
            k
            for k in ("device_code", "user_code", "verification_uri")
            if not payload.get(k)
        ]
        if missing:
            raise ProviderError(
                f"Device code response missing {', '.join(missing)}",
                status=resp.status,
                body=resp.body,
            )

        interval = _int_field(payload, "interval", DEFAULT_INTERVAL)
        expires_in = _int_field(payload, "expires_in", DEFAULT_EXPIRES_IN)
        session = DeviceAuthSession(
            device_code=str(payload["device_code"]),
            user_code=str(payload["user_code"]),
            verification_uri=str(payload["verification_uri"]),
            interval=max(interval, 0),
            expires_at=self.clock() + expires_in,
        )
        logger.debug(
            f"Device session created, interval={session.interval}s, "
            f"expires_in={expires_in}s"
        )
        return session

    def _classify(
        self, session: DeviceAuthSession, resp: HttpResponse
    ):
        """Map one token endpoint response to (state, token)."""
        if resp.status == 428:
            return PollState.PENDING, None
        if resp.status == 403:
            return PollState.DENIED, None
        if resp.status != 200:
            raise NetworkError(
                f"Failed to obtain access token: {resp.status} - {resp.body}",
                status=resp.status,
                body=resp.body,
            )

        try:
            payload = resp.payload() if resp.body.strip() else {}
        except ValueError as e:
            raise ProviderError(
                f"Error decoding token response: {e}",
                status=resp.status,
                body=resp.body,
            ) from e

        token = payload.get("access_token")
        if token:
            return PollState.AUTHORIZED, AccessToken(str(token))

        error = payload.get("error")
        if not error or error == "authorization_pending":
            return PollState.PENDING, None
        if error == "slow_down":
            new_interval = payload.get("interval")
            try:
                new_interval = int(new_interval) if new_interval else None
            except (TypeError, ValueError):
                new_interval = None
            session.widen_interval(new_interval)
            logger.info(f"Provider asked to slow down; interval now {session.interval}s")
            return PollState.PENDING, None
        if error == "access_denied":
            return PollState.DENIED, None
        if error == "expired_token":
            return PollState.EXPIRED, None
        raise ProviderError(
            f"Token endpoint error: {error} - "
            f"{payload.get('error_description', '')}".rstrip(" -"),
            status=resp.status,
            body=resp.body,
        )

    def poll_for_token(self, session: DeviceAuthSession) -> AccessToken:
        """Poll until the user authorizes, declines, or the code expires."""
        if not session.announced:
            self.notify(session)
            session.announced = True

        while True:
            self.sleep(session.interval)
            if self.clock() >= session.expires_at:
                raise SessionExpired("Device code expired before authorization")

            logger.debug("Polling for access token...")
            resp = self.transport.post(
                self.token_url,
                data={
                    "client_id": self.client_id,
                    "device_code": session.device_code,
                    "grant_type": DEVICE_GRANT_TYPE,
                },
                headers={"Accept": "application/json"},
            )
            state, token = self._classify(session, resp)

            if state is PollState.AUTHORIZED:
                logger.info("Authorization granted")
                return token
            if state is PollState.DENIED:
                raise AuthorizationDenied(
                    "Authorization failed; the request was denied"
                )
            if state is PollState.EXPIRED:
                raise SessionExpired("Device code expired before authorization")
            logger.info(
                f"Authorization still pending, retrying in {session.interval}s"
            )

    def authenticate(self) -> AccessToken:
        session = self.request_device_session()
        return self.poll_for_token(session)
