"""CLI interface for npm-workspacer."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from . import __version__
from .types import KeyStyle, WorkspacerError

console = Console(highlight=False)


def _print(msg: str = "") -> None:
    """Print with Rich markup support."""
    console.print(msg)


def setup_logging(verbose: bool = False) -> None:
    """Route package loggers to a timestamped Rich handler."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        markup=False,
        log_time_format="[%X]",
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger = logging.getLogger("npm_workspacer")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False


def _root(args) -> Path:
    return Path(args.root).resolve() if getattr(args, "root", None) else Path.cwd().resolve()


def _load(args):
    from . import config

    root = _root(args)
    cfg = config.load_config(root)
    if getattr(args, "packages_dir", None):
        cfg["packages_dir"] = args.packages_dir
    return root, cfg


def _style(args, cfg) -> KeyStyle:
    from . import config

    if getattr(args, "style", None):
        return KeyStyle(args.style)
    return config.get_key_style(cfg)


def cmd_sync(args):
    """Fetch, select, materialize, reconcile, scaffold and merge."""
    from .merge import parse_command_set
    from .prompts import Prompter
    from .workflow import SyncOptions, format_report, run_sync

    root, cfg = _load(args)
    options = SyncOptions(
        account=getattr(args, "user", None),
        select_all=getattr(args, "all", False),
        prefix=getattr(args, "prefix", None),
        commands=parse_command_set(getattr(args, "commands", None)) or None,
        style=KeyStyle(args.style) if getattr(args, "style", None) else None,
        jobs=getattr(args, "jobs", None),
        assume_yes=getattr(args, "yes", False),
    )

    report = run_sync(root, cfg, Prompter(), options, log=_print)
    formatted = format_report(report)
    if formatted:
        _print()
        _print(escape(formatted))
    if report.failed:
        _print(f"\n[yellow]{len(report.failed)} operation(s) failed; see log above.[/yellow]")


def cmd_reconcile(args):
    """Declare every package directory in the root workspaces."""
    from .reconciler import reconcile_workspaces
    from .workflow import load_state

    root, cfg = _load(args)
    state = load_state(root, cfg)
    result = reconcile_workspaces(state)
    if result.added:
        _print(f"Workspaces added ({result.initial}): {', '.join(result.added)}")
    else:
        _print("Workspaces already up to date.")


def cmd_scaffold(args):
    """Create package.json files for members that lack one."""
    from .prompts import Prompter
    from .workflow import load_state, run_scaffold

    root, cfg = _load(args)
    state = load_state(root, cfg)
    outcomes = run_scaffold(state, Prompter(), cfg, assume_yes=args.yes, log=_print)
    if not outcomes:
        _print("Nothing to scaffold.")
        return
    for outcome in outcomes:
        if outcome.ok:
            _print(f"  [green]+[/green] {outcome.name}")
        else:
            _print(f"  [red]x[/red] {outcome.name}: {escape(outcome.detail)}")


def cmd_scripts(args):
    """Merge a command set into root and member scripts."""
    from .merge import merge_commands, parse_command_set
    from .prompts import Prompter
    from .workflow import load_state, prompt_commands

    root, cfg = _load(args)
    state = load_state(root, cfg)

    commands = parse_command_set(args.commands)
    if not commands:
        commands = prompt_commands(Prompter(), cfg.get("default_commands") or [], _print)

    prefix = args.prefix or root.name
    result = merge_commands(state, commands, prefix=prefix, style=_style(args, cfg))

    for name, value in result.root_scripts.items():
        _print(f"  {name}: [cyan]{escape(value)}[/cyan]")
    if result.updated:
        _print(f"Updated: {', '.join(result.updated)}")
    if result.skipped:
        _print(f"[dim]Skipped (no package.json): {', '.join(result.skipped)}[/dim]")
    if result.failed:
        _print(f"[red]Failed to update: {', '.join(result.failed)}[/red]")


def cmd_status(args):
    """Show members, manifest presence and workspace coverage."""
    from .manifest import has_manifest
    from .reconciler import is_covered
    from .workflow import load_state

    root, cfg = _load(args)
    state = load_state(root, cfg)
    declared = state.get_workspaces()

    _print(f"Workspace: {root}")
    if declared is None:
        _print("Workspaces: [yellow]not declared[/yellow]")
    else:
        _print(f"Workspaces: {', '.join(declared) or '(empty)'}")

    names = state.package_dirs()
    if not names:
        _print(f"No package directories under {state.packages_dir}/")
        return
    _print(f"\nPackages ({len(names)}):")
    for name in names:
        manifest = "package.json" if has_manifest(state.package_path(name)) else "[yellow]no package.json[/yellow]"
        covered = declared is not None and is_covered(state.glob_for(name), declared)
        flag = "" if covered else " [yellow](not in workspaces)[/yellow]"
        _print(f"  {name}: {manifest}{flag}")


def cmd_config(args):
    """Show the effective configuration."""
    from . import config

    root, cfg = _load(args)
    _print(f"[dim]# global: {config.get_global_config_path()}[/dim]")
    _print(f"[dim]# workspace: {config.get_workspace_config_path(root)}[/dim]")
    print(yaml.dump(cfg, default_flow_style=False, sort_keys=False), end="")


def _add_style_arg(p: argparse.ArgumentParser) -> None:
    p.add_argument("--style", choices=[s.value for s in KeyStyle],
                   help="Member script key style (default: from config)")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="npm-workspacer",
        description="npm-workspacer: sync an npm monorepo with remote repositories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"npm-workspacer {__version__}")
    parser.add_argument("--root", help="Workspace root (default: cwd)")
    parser.add_argument("--packages-dir", help="Packages directory under the root (default: packages)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    # sync
    sync_p = subparsers.add_parser("sync", help="Clone/update repositories and link scripts")
    sync_p.add_argument("--user", help="Account whose repositories to list")
    sync_p.add_argument("--all", action="store_true", help="Select every repository")
    sync_p.add_argument("--prefix", help="Script prefix (default: first selected repository)")
    sync_p.add_argument("--commands", help="Comma-separated commands to link")
    _add_style_arg(sync_p)
    sync_p.add_argument("--jobs", type=int, help="Parallel clone/update workers")
    sync_p.add_argument("-y", "--yes", action="store_true",
                        help="Create package.json for every member missing one without asking")
    sync_p.set_defaults(func=cmd_sync)

    # reconcile
    reconcile_p = subparsers.add_parser("reconcile", help="Declare package dirs as workspaces")
    reconcile_p.set_defaults(func=cmd_reconcile)

    # scaffold
    scaffold_p = subparsers.add_parser("scaffold", help="Create missing member package.json files")
    scaffold_p.add_argument("-y", "--yes", action="store_true", help="Initialize all without asking")
    scaffold_p.set_defaults(func=cmd_scaffold)

    # scripts
    scripts_p = subparsers.add_parser("scripts", help="Merge commands into root and member scripts")
    scripts_p.add_argument("--commands", help="Comma-separated commands to link")
    scripts_p.add_argument("--prefix", help="Script prefix (default: workspace directory name)")
    _add_style_arg(scripts_p)
    scripts_p.set_defaults(func=cmd_scripts)

    # status
    status_p = subparsers.add_parser("status", help="Show workspace members")
    status_p.set_defaults(func=cmd_status)

    # config
    config_p = subparsers.add_parser("config", help="Show effective configuration")
    config_p.set_defaults(func=cmd_config)

    return parser


def main(argv: list[str] | None = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    func = getattr(args, "func", cmd_sync)
    try:
        func(args)
    except WorkspacerError as e:
        _print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)
    except KeyboardInterrupt:
        print()
        sys.exit(130)
