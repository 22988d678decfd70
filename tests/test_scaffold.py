"""Tests for the package manifest scaffolder."""

import json
import sys

import pytest

from npm_workspacer import scaffold
from npm_workspacer.manifest import WorkspaceState
from npm_workspacer.runner_utils import CommandResult
from npm_workspacer.scaffold import find_missing_manifests, scaffold_manifests
from npm_workspacer.types import Action, Err, ErrorKind, Ok

# Portable stand-in for `npm init -y`
FAKE_INIT = [
    sys.executable,
    "-c",
    "import json; json.dump({'name': 'scaffolded', 'version': '1.0.0'}, open('package.json', 'w'))",
]


class TestFindMissing:
    def test_lists_dirs_without_manifest(self, workspace, make_package):
        make_package("has", {"name": "has"})
        make_package("needs")
        make_package("also-needs")

        missing = find_missing_manifests(WorkspaceState.load(workspace))

        assert missing == ["also-needs", "needs"]

    def test_empty_workspace(self, workspace):
        assert find_missing_manifests(WorkspaceState.load(workspace)) == []


class TestScaffold:
    def test_creates_manifest(self, workspace, make_package):
        pkg = make_package("needs")
        state = WorkspaceState.load(workspace)

        outcomes = scaffold_manifests(state, ["needs"], init_command=FAKE_INIT)

        assert outcomes == [Ok("needs", Action.SCAFFOLD, pkg)]
        assert json.loads((pkg / "package.json").read_text())["name"] == "scaffolded"

    def test_existing_manifest_untouched(self, workspace, make_package):
        pkg = make_package("has", {"name": "has", "scripts": {"x": "y"}})
        before = (pkg / "package.json").read_bytes()
        state = WorkspaceState.load(workspace)

        outcomes = scaffold_manifests(state, ["has"], init_command=FAKE_INIT)

        assert outcomes == []
        assert (pkg / "package.json").read_bytes() == before

    def test_failure_does_not_block_others(self, workspace, make_package, monkeypatch):
        make_package("bad")
        good = make_package("good")
        state = WorkspaceState.load(workspace)

        def _run(cmd, *, cwd=None, timeout=None):
            if cwd.name == "bad":
                return CommandResult(False, "npm ERR!", ErrorKind.COMMAND_FAILED)
            (cwd / "package.json").write_text("{}")
            return CommandResult(True)

        monkeypatch.setattr(scaffold, "run_command", _run)

        outcomes = scaffold_manifests(state, ["bad", "good"])

        assert outcomes == [
            Err("bad", Action.SCAFFOLD, ErrorKind.COMMAND_FAILED, "npm ERR!"),
            Ok("good", Action.SCAFFOLD, good),
        ]

    def test_default_command_is_npm_init(self, workspace, make_package, monkeypatch):
        make_package("needs")
        calls = []

        def _run(cmd, *, cwd=None, timeout=None):
            calls.append(cmd)
            (cwd / "package.json").write_text("{}")
            return CommandResult(True)

        monkeypatch.setattr(scaffold, "run_command", _run)
        scaffold_manifests(WorkspaceState.load(workspace), ["needs"])

        assert calls == [["npm", "init", "-y"]]

    def test_command_succeeding_without_manifest_is_error(self, workspace, make_package):
        make_package("needs")
        outcomes = scaffold_manifests(
            WorkspaceState.load(workspace), ["needs"], init_command=[sys.executable, "-c", "pass"]
        )
        assert isinstance(outcomes[0], Err)
        assert "did not create package.json" in outcomes[0].detail

    def test_unknown_directory(self, workspace):
        outcomes = scaffold_manifests(WorkspaceState.load(workspace), ["nope"], init_command=FAKE_INIT)
        assert outcomes == [Err("nope", Action.SCAFFOLD, ErrorKind.OS_ERROR, "not a directory")]

