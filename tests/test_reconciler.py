"""Tests for the workspace manifest reconciler."""

import json

import pytest

from npm_workspacer.manifest import WorkspaceState, read_manifest
from npm_workspacer.reconciler import WorkspacesState, is_covered, reconcile_workspaces
from npm_workspacer.types import ManifestNotFoundError, ManifestParseError


def _root(workspace):
    return read_manifest(workspace / "package.json")


class TestReconcile:
    def test_absent_writes_derived_globs(self, workspace, make_package):
        make_package("b")
        make_package("a")
        state = WorkspaceState.load(workspace)

        result = reconcile_workspaces(state)

        assert result.initial == WorkspacesState.ABSENT
        assert result.written
        assert _root(workspace)["workspaces"] == ["packages/a", "packages/b"]
        # In-memory state reloaded from disk
        assert state.get_workspaces() == ["packages/a", "packages/b"]

    def test_absent_with_no_packages_declares_empty(self, workspace):
        state = WorkspaceState.load(workspace)
        reconcile_workspaces(state)
        assert _root(workspace)["workspaces"] == []

    def test_present_and_complete_is_untouched(self, workspace, make_package):
        make_package("a")
        text = json.dumps({"name": "m", "workspaces": ["packages/*"]}, indent=2) + "\n"
        (workspace / "package.json").write_text(text)

        result = reconcile_workspaces(WorkspaceState.load(workspace))

        assert result.initial == WorkspacesState.PRESENT
        assert result.added == []
        assert not result.written
        assert (workspace / "package.json").read_text() == text

    def test_present_appends_uncovered(self, workspace, make_package):
        make_package("a")
        make_package("b")
        (workspace / "package.json").write_text(
            json.dumps({"name": "m", "workspaces": ["packages/a", "tools/*"]})
        )

        result = reconcile_workspaces(WorkspaceState.load(workspace))

        assert result.added == ["packages/b"]
        assert _root(workspace)["workspaces"] == ["packages/a", "tools/*", "packages/b"]

    def test_preserves_unrelated_fields(self, workspace, make_package):
        make_package("a")
        (workspace / "package.json").write_text(
            json.dumps({"name": "m", "private": True, "devDependencies": {"x": "1"}})
        )

        reconcile_workspaces(WorkspaceState.load(workspace))

        root = _root(workspace)
        assert list(root) == ["name", "private", "devDependencies", "workspaces"]
        assert root["devDependencies"] == {"x": "1"}

    def test_idempotent(self, workspace, make_package):
        make_package("a")
        reconcile_workspaces(WorkspaceState.load(workspace))
        first = (workspace / "package.json").read_text()

        result = reconcile_workspaces(WorkspaceState.load(workspace))

        assert not result.written
        assert (workspace / "package.json").read_text() == first

    def test_every_directory_covered_afterwards(self, workspace, make_package):
        for name in ("one", "two", "three"):
            make_package(name)
        (workspace / "package.json").write_text(json.dumps({"workspaces": ["packages/two"]}))

        state = WorkspaceState.load(workspace)
        reconcile_workspaces(state)

        declared = _root(workspace)["workspaces"]
        for name in state.package_dirs():
            assert is_covered(f"packages/{name}", declared)

    def test_missing_root_manifest_is_fatal(self, tmp_path):
        with pytest.raises(ManifestNotFoundError):
            reconcile_workspaces(WorkspaceState.load(tmp_path))

    def test_corrupt_root_manifest_is_fatal(self, workspace):
        (workspace / "package.json").write_text("{")
        with pytest.raises(ManifestParseError):
            WorkspaceState.load(workspace)


class TestIsCovered:
    def test_exact(self):
        assert is_covered("packages/a", ["packages/a"])

    def test_wildcard(self):
        assert is_covered("packages/a", ["packages/*"])

    def test_dot_slash_and_trailing_slash(self):
        assert is_covered("packages/a", ["./packages/a/"])

    def test_negation_ignored(self):
        assert not is_covered("packages/a", ["!packages/a"])

    def test_other_dir(self):
        assert not is_covered("packages/a", ["apps/*"])
