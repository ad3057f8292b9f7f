"""Tests for the urllib transport and response decoding."""

import io
import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from dotfyles.errors import NetworkError
from dotfyles.http import HttpResponse, UrllibTransport


def _fake_response(status=200, body=b'{"ok": true}'):
    fake = MagicMock()
    fake.status = status
    fake.read.return_value = body
    fake.headers.items.return_value = [("Content-Type", "application/json")]
    fake.__enter__.return_value = fake
    return fake


class TestPayload:
    """Tests for HttpResponse.payload."""

    def test_json_by_content_type(self):
        """JSON content type is decoded as JSON."""
        resp = HttpResponse(200, '{"a": "1"}', {"Content-Type": "application/json; charset=utf-8"})
        assert resp.payload() == {"a": "1"}

    def test_json_sniffed(self):
        """A body that looks like an object is JSON even without a header."""
        resp = HttpResponse(200, ' {"a": 2}')
        assert resp.payload() == {"a": 2}

    def test_form(self):
        """Form-encoded bodies are decoded."""
        resp = HttpResponse(
            200, "a=1&b=two+words", {"content-type": "application/x-www-form-urlencoded"}
        )
        assert resp.payload() == {"a": "1", "b": "two words"}

    def test_garbage_raises_value_error(self):
        """Neither JSON nor form data."""
        with pytest.raises(ValueError):
            HttpResponse(200, "nonsense").payload()

    def test_json_array_rejected(self):
        """Only JSON objects are accepted."""
        with pytest.raises(ValueError):
            HttpResponse(200, "[1, 2]", {"Content-Type": "application/json"}).payload()


class TestUrllibTransport:
    """Tests for UrllibTransport."""

    def test_success(self):
        """Successful form-encoded POST."""
        with patch(
            "dotfyles.http.urllib.request.urlopen", return_value=_fake_response()
        ) as mock_open:
            resp = UrllibTransport(timeout=7).post("https://x/y", data={"a": "b"})

        assert resp.status == 200
        assert resp.json() == {"ok": True}
        req = mock_open.call_args[0][0]
        assert req.data == b"a=b"
        assert req.get_method() == "POST"
        assert req.get_header("Content-type") == "application/x-www-form-urlencoded"
        assert mock_open.call_args.kwargs["timeout"] == 7

    def test_json_body(self):
        """json_data is sent as a JSON document."""
        with patch(
            "dotfyles.http.urllib.request.urlopen",
            return_value=_fake_response(201, b"{}"),
        ) as mock_open:
            resp = UrllibTransport().post(
                "https://x/user/repos", json_data={"name": "dots", "private": True}
            )

        assert resp.status == 201
        req = mock_open.call_args[0][0]
        assert json.loads(req.data) == {"name": "dots", "private": True}
        assert req.get_header("Content-type") == "application/json"

    def test_http_error_returned_as_response(self):
        """Error statuses come back as responses, not exceptions."""
        err = urllib.error.HTTPError(
            "https://x", 428, "Precondition Required", {}, io.BytesIO(b"pending")
        )
        with patch("dotfyles.http.urllib.request.urlopen", side_effect=err):
            resp = UrllibTransport().post("https://x", data={})

        assert resp.status == 428
        assert resp.body == "pending"

    def test_connection_error_raises_network_error(self):
        """Unreachable hosts surface as NetworkError."""
        with patch(
            "dotfyles.http.urllib.request.urlopen",
            side_effect=urllib.error.URLError("no route"),
        ):
            with pytest.raises(NetworkError):
                UrllibTransport().get("https://x")

    def test_timeout_raises_network_error(self):
        """Socket timeouts surface as NetworkError."""
        with patch("dotfyles.http.urllib.request.urlopen", side_effect=TimeoutError()):
            with pytest.raises(NetworkError):
                UrllibTransport().get("https://x")
