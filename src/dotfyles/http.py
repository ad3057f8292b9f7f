"""Minimal HTTP transport over urllib."""

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .errors import NetworkError

logger = logging.getLogger(__name__)

USER_AGENT = "dotfyles"


@dataclass
class HttpResponse:
    status: int
    body: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def content_type(self) -> str:
        for k, v in self.headers.items():
            if k.lower() == "content-type":
                return v
        return ""

    def json(self) -> Any:
        return json.loads(self.body)

    def payload(self) -> Dict[str, str]:
        """Decode a JSON object or form-encoded body into a flat dict.

        Raises ValueError if the body is neither.
        """
        text = self.body.strip()
        if "json" in self.content_type or text.startswith("{"):
            data = json.loads(text)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            return data
        pairs = urllib.parse.parse_qsl(text, strict_parsing=True)
        return dict(pairs)


class UrllibTransport:
    """Sends requests with urllib and never raises on HTTP error statuses.

    Non-2xx responses are returned as HttpResponse objects so callers can
    branch on the status; only connection-level failures raise.
    """

    def __init__(self, timeout: float = 60):
        self.timeout = timeout

    def request(
        self,
        method: str,
        url: str,
        data: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        json_data: Any = None,
    ) -> HttpResponse:
        body = None
        req_headers = {"User-Agent": USER_AGENT}
        if headers:
            req_headers.update(headers)
        if json_data is not None:
            body = json.dumps(json_data).encode()
            req_headers.setdefault("Content-Type", "application/json")
        elif data is not None:
            body = urllib.parse.urlencode(data).encode()
            req_headers.setdefault(
                "Content-Type", "application/x-www-form-urlencoded"
            )

        req = urllib.request.Request(
            url, data=body, headers=req_headers, method=method
        )
        logger.debug(f"{method} {url}")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return HttpResponse(
                    status=resp.status,
                    body=resp.read().decode("utf-8", errors="replace"),
                    headers=dict(resp.headers.items()),
                )
        except urllib.error.HTTPError as e:
            text = e.read().decode("utf-8", errors="replace")
            return HttpResponse(
                status=e.code,
                body=text,
                headers=dict(e.headers.items()) if e.headers else {},
            )
        except (urllib.error.URLError, OSError) as e:
            raise NetworkError(f"{method} {url} failed: {e}") from e

    def post(self, url: str, data=None, headers=None, json_data=None) -> HttpResponse:
        return self.request(
            "POST", url, data=data, headers=headers, json_data=json_data
        )

    def get(self, url: str, headers=None) -> HttpResponse:
        return self.request("GET", url, headers=headers)
