"""Shared fixtures for dotfyles tests."""

import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from dotfyles.http import HttpResponse


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeTransport:
    """Replays canned responses and records every request."""

    def __init__(self, responses: Optional[List[HttpResponse]] = None):
        self.responses = list(responses or [])
        self.calls: List[Dict] = []

    def queue(self, status: int, body: str = "", content_type: str = "application/json"):
        self.responses.append(
            HttpResponse(status, body, {"Content-Type": content_type})
        )
        return self

    def request(self, method, url, data=None, headers=None, json_data=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "data": data,
                "headers": headers,
                "json": json_data,
            }
        )
        if not self.responses:
            raise AssertionError(f"Unexpected {method} {url}")
        return self.responses.pop(0)

    def post(self, url, data=None, headers=None, json_data=None):
        return self.request(
            "POST", url, data=data, headers=headers, json_data=json_data
        )

    def get(self, url, headers=None):
        return self.request("GET", url, headers=headers)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transport():
    return FakeTransport()


def git(cwd: Path, *args) -> subprocess.CompletedProcess:
    """Run git for test setup, failing loudly."""
    return subprocess.run(
        ["git", *args], cwd=cwd, check=True, capture_output=True, text=True
    )


def create_bare_remote(tmp_path: Path, files: Optional[Dict[str, str]] = None) -> Path:
    """Create a bare repo, optionally seeded with one commit on main.

    Args:
        tmp_path: Temporary directory
        files: Dict of {filename: content} to commit

    Returns:
        Path to the bare repository
    """
    remote = tmp_path / "remote.git"
    subprocess.run(
        ["git", "init", "--bare", "--initial-branch=main", str(remote)],
        check=True,
        capture_output=True,
    )
    if not files:
        return remote

    work = tmp_path / "seed"
    work.mkdir()
    git(work, "init", "--initial-branch=main")
    git(work, "config", "user.email", "seed@test.com")
    git(work, "config", "user.name", "Seed")
    for filename, content in files.items():
        path = work / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    git(work, "add", ".")
    git(work, "commit", "-m", "seed")
    git(work, "remote", "add", "origin", str(remote))
    git(work, "push", "origin", "HEAD:main")
    return remote


def remote_files(remote: Path, branch: str = "main") -> List[str]:
    """Top-level names in the remote branch tip."""
    result = subprocess.run(
        ["git", "--git-dir", str(remote), "ls-tree", "--name-only", branch],
        check=True,
        capture_output=True,
        text=True,
    )
    return [line for line in result.stdout.splitlines() if line]


def remote_commit_count(remote: Path, branch: str = "main") -> int:
    """Commits on the remote branch, 0 if it does not exist."""
    result = subprocess.run(
        ["git", "--git-dir", str(remote), "rev-list", "--count", branch],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        return 0
    return int(result.stdout.strip())
