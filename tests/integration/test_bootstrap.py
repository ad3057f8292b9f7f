"""End-to-end runs of the Orchestrator against a local bare remote."""

import os

import pytest

from conftest import create_bare_remote, git, remote_commit_count, remote_files
from dotfyles.auth import AccessToken, StaticIdentityProvider
from dotfyles.errors import (
    AuthorizationDenied,
    ProviderError,
    RejectedError,
    RemoteNotFoundError,
)
from dotfyles.manifest import EntryKind, ManifestEntry
from dotfyles.pipeline import Orchestrator
from dotfyles.repo import RepoState, SyncOutcome

MANIFEST = (
    ManifestEntry(".bashrc"),
    ManifestEntry(".zshrc"),
    ManifestEntry(".config/nvim/", EntryKind.DIRECTORY),
    ManifestEntry(".config/kitty/", EntryKind.DIRECTORY),
)


@pytest.fixture
def home(tmp_path):
    home = tmp_path / "home"
    (home / ".config" / "nvim").mkdir(parents=True)
    (home / ".config" / "nvim" / "init.lua").write_text("vim.o.number = true")
    (home / ".bashrc").write_text("export EDITOR=nvim\n")
    os.chmod(home / ".bashrc", 0o600)
    return home


def make_orchestrator(home, remote, authenticate=None, name="Test User", **kwargs):
    tokens = []

    def default_auth():
        token = AccessToken("gho_test")
        tokens.append(token)
        return token

    return Orchestrator(
        authenticate=authenticate or default_auth,
        resolve_remote_url=lambda token: str(remote),
        identity_provider=StaticIdentityProvider(name, "test@example.com"),
        manifest=MANIFEST,
        home=home,
        dotfiles_dir=home / "dotfyles",
        **kwargs,
    )


def test_first_run_collects_and_pushes(home, tmp_path):
    """Fresh home and empty remote: files are collected and pushed."""
    remote = create_bare_remote(tmp_path)

    result = make_orchestrator(home, remote).run()

    assert result.ok
    assert result.sync.outcome is SyncOutcome.PUSHED
    assert result.repo_state is RepoState.SYNCED
    dest = home / "dotfyles"
    assert (dest / ".bashrc").read_text() == "export EDITOR=nvim\n"
    assert oct(os.stat(dest / ".bashrc").st_mode & 0o777) == oct(0o600)
    assert os.path.islink(dest / "nvim")
    assert not (dest / ".zshrc").exists()
    assert not (dest / "kitty").exists()
    assert result.materialized.missing == [home / ".zshrc", home / ".config" / "kitty"]
    assert sorted(remote_files(remote)) == [".bashrc", "nvim"]


def test_rerun_without_changes_is_noop(home, tmp_path):
    """A second run with nothing new makes no commit."""
    remote = create_bare_remote(tmp_path)
    make_orchestrator(home, remote).run()

    result = make_orchestrator(home, remote).run()

    assert result.ok
    assert result.sync.outcome is SyncOutcome.NOTHING_TO_PUSH
    assert remote_commit_count(remote) == 1
    assert result.materialized.skipped == [home / "dotfyles" / "nvim"]


def test_rerun_with_changes_pushes_update(home, tmp_path):
    """A newly created dotfile is pushed as a second commit."""
    remote = create_bare_remote(tmp_path)
    make_orchestrator(home, remote).run()
    (home / ".zshrc").write_text("setopt autocd\n")

    result = make_orchestrator(home, remote).run()

    assert result.sync.outcome is SyncOutcome.PUSHED
    assert remote_commit_count(remote) == 2
    assert ".zshrc" in remote_files(remote)


def test_existing_remote_history_is_kept(home, tmp_path):
    """Remote commits are built upon, never replaced."""
    remote = create_bare_remote(tmp_path, {"README.md": "my dots"})

    result = make_orchestrator(home, remote).run()

    assert result.ok
    assert sorted(remote_files(remote)) == [".bashrc", "README.md", "nvim"]
    assert remote_commit_count(remote) == 2
    assert (home / "dotfyles" / "README.md").read_text() == "my dots"


def test_collected_file_wins_over_remote_copy(home, tmp_path):
    """A file that exists both at home and on the remote keeps the home copy."""
    remote = create_bare_remote(
        tmp_path, {".bashrc": "old\n", "README.md": "my dots"}
    )

    result = make_orchestrator(home, remote).run()

    assert result.ok
    dest = home / "dotfyles"
    assert (dest / ".bashrc").read_text() == "export EDITOR=nvim\n"
    assert (dest / "README.md").read_text() == "my dots"
    assert remote_commit_count(remote) == 2
    shown = git(dest, "show", "HEAD:.bashrc").stdout
    assert shown == "export EDITOR=nvim\n"


def test_auth_failure_aborts_before_disk(home, tmp_path):
    """Denied authorization leaves the filesystem and remote untouched."""
    remote = create_bare_remote(tmp_path)

    def denied():
        raise AuthorizationDenied("no")

    with pytest.raises(AuthorizationDenied):
        make_orchestrator(home, remote, authenticate=denied).run()

    assert not (home / "dotfyles").exists()
    assert remote_commit_count(remote) == 0


def test_remote_resolution_failure_aborts(home, tmp_path):
    """Failure to work out the remote URL propagates before any disk work."""
    def no_remote(token):
        raise ProviderError("GitHub user response has no login")

    orchestrator = make_orchestrator(home, tmp_path / "unused.git")
    orchestrator.resolve_remote_url = no_remote

    with pytest.raises(ProviderError):
        orchestrator.run()
    assert not (home / "dotfyles").exists()


def test_missing_identity_leaves_materialized_files(home, tmp_path):
    """Without an author the files are still collected but nothing is pushed."""
    remote = create_bare_remote(tmp_path)

    result = make_orchestrator(home, remote, name="").run()

    assert not result.ok
    assert "required" in str(result.errors[0])
    assert (home / "dotfyles" / ".bashrc").exists()
    assert remote_commit_count(remote) == 0


def test_unreachable_remote_is_reported(home, tmp_path):
    """A fetch failure is reported after the files are collected."""
    result = make_orchestrator(home, tmp_path / "missing-on-github.git").run()

    assert not result.ok
    assert isinstance(result.errors[0], RemoteNotFoundError)
    assert result.sync is None
    assert result.materialized is not None
    dest = home / "dotfyles"
    assert (dest / ".bashrc").read_text() == "export EDITOR=nvim\n"
    assert os.path.islink(dest / "nvim")
    assert result.repo_state is RepoState.REMOTE_CONFIGURED


def test_diverged_remote_reports_rejection(home, tmp_path):
    """A remote that moved on is never overwritten."""
    remote = create_bare_remote(tmp_path)
    make_orchestrator(home, remote).run()
    dest = home / "dotfyles"

    # A local commit the remote never saw...
    (dest / "notes").write_text("local only")
    git(dest, "add", "notes")
    git(dest, "-c", "user.name=T", "-c", "user.email=t@t", "commit", "-m", "local")

    # ...while another machine pushed first.
    other = tmp_path / "other"
    git(tmp_path, "clone", str(remote), str(other))
    (other / "remote-only").write_text("r")
    git(other, "add", "remote-only")
    git(other, "-c", "user.name=O", "-c", "user.email=o@o", "commit", "-m", "other")
    git(other, "push", "origin", "HEAD:main")

    result = make_orchestrator(home, remote).run()

    assert not result.ok
    assert isinstance(result.errors[0], RejectedError)
    assert "remote-only" in remote_files(remote)
    assert "notes" not in remote_files(remote)
