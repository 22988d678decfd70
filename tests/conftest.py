"""Pytest fixtures for npm-workspacer tests."""

import json
import shutil
import subprocess
from pathlib import Path

import pytest

from npm_workspacer import config


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the global config at an empty temp directory."""
    config_dir = tmp_path / "xdg" / "npm-workspacer"
    monkeypatch.setattr(config, "get_config_dir", lambda: config_dir)
    return config_dir


@pytest.fixture
def workspace(tmp_path):
    """Create a workspace root with a minimal package.json and packages/ dir."""
    root = tmp_path / "monorepo"
    root.mkdir()
    (root / "package.json").write_text(
        json.dumps({"name": "monorepo", "private": True}, indent=2) + "\n"
    )
    (root / "packages").mkdir()
    return root


@pytest.fixture
def make_package(workspace):
    """Factory creating packages/<name>, optionally with a package.json."""

    def _make(name: str, manifest: dict | None = None) -> Path:
        pkg = workspace / "packages" / name
        pkg.mkdir(parents=True, exist_ok=True)
        if manifest is not None:
            (pkg / "package.json").write_text(json.dumps(manifest, indent=2) + "\n")
        return pkg

    return _make


class FakePrompter:
    """Scripted stand-in for the questionary prompter.

    Each answer list is consumed in order; prompts are recorded.
    """

    def __init__(self, texts=None, confirms=None, checkboxes=None):
        self.texts = list(texts or [])
        self.confirms = list(confirms or [])
        self.checkboxes = list(checkboxes or [])
        self.asked: list[tuple[str, str]] = []

    def text(self, message, default=""):
        self.asked.append(("text", message))
        answer = self.texts.pop(0)
        return answer if answer is not None else default

    def confirm(self, message, default=False):
        self.asked.append(("confirm", message))
        return self.confirms.pop(0)

    def checkbox(self, message, choices):
        self.asked.append(("checkbox", message))
        return list(self.checkboxes.pop(0))


@pytest.fixture
def prompter_factory():
    return FakePrompter


def _git(*args, cwd):
    subprocess.run(
        ["git", "-c", "user.email=test@test.com", "-c", "user.name=Test", *args],
        cwd=cwd,
        capture_output=True,
        check=True,
    )


@pytest.fixture
def git_remote(tmp_path):
    """Factory creating a local git repository with one commit; returns its path."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")

    def _make(name: str, files: dict[str, str] | None = None) -> Path:
        repo = tmp_path / "remotes" / name
        repo.mkdir(parents=True)
        _git("init", cwd=repo)
        for rel, content in (files or {"README.md": f"# {name}\n"}).items():
            (repo / rel).write_text(content)
        _git("add", ".", cwd=repo)
        _git("commit", "-m", "init", cwd=repo)
        return repo

    return _make


@pytest.fixture
def git_commit():
    """Add a commit touching ``filename`` to an existing repository."""

    def _commit(repo: Path, filename: str, content: str) -> None:
        (repo / filename).write_text(content)
        _git("add", ".", cwd=repo)
        _git("commit", "-m", f"update {filename}", cwd=repo)

    return _commit
