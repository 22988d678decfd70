"""Merge a command set into the root and member package.json scripts.

For every command ``c``:

- root ``scripts[c]`` delegates to the members,
- each member with a package.json gets one key (``<prefix>:<c>`` or
  ``<package>:<c>`` depending on the key style) whose value echoes a
  ``<package>:<c>`` marker and runs the member's own ``c`` script if present.

Only keys derived from the command set are written. Existing keys keep
their position, new keys are appended, everything else is left untouched.
"""

from __future__ import annotations

import logging

from .manifest import (
    WorkspaceState,
    get_scripts,
    has_manifest,
    manifest_path,
    read_manifest_text,
    write_manifest,
)
from .types import KeyStyle, ManifestError, MergeResult

logger = logging.getLogger(__name__)


def parse_command_set(raw: str | list[str] | None) -> list[str]:
    """Parse comma-separated command names.

    Names are trimmed; blanks and repeats are dropped, first occurrence wins.
    """
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else raw
    commands: list[str] = []
    for part in parts:
        name = str(part).strip()
        if name and name not in commands:
            commands.append(name)
    return commands


def member_key(command: str, *, prefix: str, package: str, style: KeyStyle) -> str:
    """Script key written into a member manifest."""
    namespace = package if style == KeyStyle.PACKAGE else prefix
    return f"{namespace}:{command}"


def member_script(command: str, *, package: str) -> str:
    """Script value written into a member manifest."""
    return f'echo "{package}:{command}" && npm run {command} --if-present'


def root_script(
    command: str,
    *,
    prefix: str,
    style: KeyStyle,
    members: list[str],
    packages_dir: str,
) -> str:
    """Script value written into the root manifest for ``command``.

    Args:
        members: Member directory names that carry a package.json, sorted.
    """
    if style == KeyStyle.PREFIX:
        return f"npm run {prefix}:{command} --workspaces --if-present"
    if not members:
        return f"npm run {command} --workspaces --if-present"
    return " && ".join(
        f"npm run {package}:{command} --workspace={packages_dir}/{package}"
        for package in members
    )


def merge_package_scripts(
    state: WorkspaceState,
    commands: list[str],
    *,
    prefix: str,
    style: KeyStyle = KeyStyle.PREFIX,
    result: MergeResult | None = None,
) -> MergeResult:
    """Merge the command set into every member manifest.

    Each member is read, updated and written independently; a member that
    cannot be read or written is reported as failed.
    """
    result = result or MergeResult()

    for package in state.package_dirs():
        directory = state.package_path(package)
        if not has_manifest(directory):
            logger.warning("Skipping %s: no package.json", package)
            result.skipped.append(package)
            continue

        path = manifest_path(directory)
        try:
            data, indent = read_manifest_text(path)
            scripts = get_scripts(data, path)
        except ManifestError as e:
            logger.error("Skipping %s: %s", package, e)
            result.failed.append(package)
            continue

        for command in commands:
            key = member_key(command, prefix=prefix, package=package, style=style)
            scripts[key] = member_script(command, package=package)

        try:
            write_manifest(path, data, indent)
        except OSError as e:
            logger.error("Error writing %s: %s", path, e)
            result.failed.append(package)
            continue
        logger.info("Updated scripts in %s", path)
        result.updated.append(package)

    return result


def merge_root_scripts(
    state: WorkspaceState,
    commands: list[str],
    *,
    prefix: str,
    style: KeyStyle = KeyStyle.PREFIX,
    members: list[str] | None = None,
) -> dict[str, str]:
    """Set root scripts for the command set and re-derive ``workspaces``.

    Only mutates ``state``; the caller saves it.
    """
    if members is None:
        members = [n for n in state.package_dirs() if has_manifest(state.package_path(n))]

    applied: dict[str, str] = {}
    scripts = state.scripts
    for command in commands:
        value = root_script(
            command,
            prefix=prefix,
            style=style,
            members=members,
            packages_dir=state.packages_dir,
        )
        scripts[command] = value
        applied[command] = value

    state.set_workspaces(state.derived_workspaces())
    return applied


def merge_commands(
    state: WorkspaceState,
    commands: list[str],
    *,
    prefix: str,
    style: KeyStyle = KeyStyle.PREFIX,
) -> MergeResult:
    """Merge ``commands`` into the member manifests and then the root.

    Raises:
        ValueError: If the command set is empty.
        ManifestParseError: If the root ``scripts`` field is not an object.
        ManifestWriteError: If the root manifest cannot be written.
    """
    if not commands:
        raise ValueError("command set must not be empty")
    # Checked before any member is touched
    state.scripts

    result = merge_package_scripts(state, commands, prefix=prefix, style=style)
    result.root_scripts = merge_root_scripts(
        state,
        commands,
        prefix=prefix,
        style=style,
        members=list(result.updated),
    )
    state.save()
    logger.info("Updated scripts in %s", state.manifest_file)
    return result
