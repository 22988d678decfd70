"""Run orchestration shared by the CLI subcommands.

sync flow:
1. Load the workspace state (root package.json must exist)
2. Resolve the account and fetch its catalog
3. Resolve the selection
4. Clone or update every selected repository
5. Reconcile ``workspaces``
6. Offer to scaffold missing member manifests
7. Merge the command set into root and member scripts

Recoverable failures end up in the returned RunReport. Fatal ones raise a
WorkspacerError subclass; nothing here calls sys.exit().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Protocol

from . import config
from .catalog import default_account, fetch_catalog
from .manifest import WorkspaceState
from .materializer import materialize_all
from .merge import merge_commands, parse_command_set
from .reconciler import reconcile_workspaces
from .scaffold import find_missing_manifests, scaffold_manifests
from .selection import resolve_selection, to_sources
from .types import Action, Err, KeyStyle, MergeResult, Outcome, RunReport, UsageError

logger = logging.getLogger(__name__)

LogFn = Callable[[str], None]


class PrompterLike(Protocol):
    def text(self, message: str, default: str = "") -> str: ...

    def confirm(self, message: str, default: bool = False) -> bool: ...

    def checkbox(self, message: str, choices: list[str]) -> list[str]: ...


@dataclass
class SyncOptions:
    """Answers supplied up front; anything left as None is prompted for."""

    account: str | None = None
    select_all: bool = False
    prefix: str | None = None
    commands: list[str] | None = None
    style: KeyStyle | None = None
    jobs: int | None = None
    assume_yes: bool = False


def _noop(_msg: str) -> None:
    return


def load_state(root: Path, cfg: dict[str, Any]) -> WorkspaceState:
    """Load the workspace state for ``root`` using the configured packages dir."""
    return WorkspaceState.load(root, packages_dir=cfg.get("packages_dir", "packages"))


def prompt_account(prompter: PrompterLike) -> str:
    default = default_account()
    account = prompter.text("Enter GitHub username to fetch repository list", default=default)
    return account or default


def prompt_prefix(prompter: PrompterLike, default: str, log: LogFn) -> str:
    log(
        "By default, linking commands are created between your workspace and the cloned "
        "repositories.\n"
        f"They are prefixed with a name (e.g. {default}:build, {default}:test).\n"
        "If you'd prefer a custom prefix, you can set it now."
    )
    prefix = prompter.text(f"What prefix should run commands have? ({default})", default=default)
    return prefix or default


def prompt_commands(prompter: PrompterLike, defaults: list[str], log: LogFn) -> list[str]:
    """Ask for the command set until a non-empty one is given."""
    default = ",".join(defaults)
    while True:
        raw = prompter.text(
            "Which commands should be linked? (comma-separated, e.g. build,test)",
            default=default,
        )
        commands = parse_command_set(raw)
        if commands:
            return commands
        log("Please enter at least one command.")


def run_scaffold(
    state: WorkspaceState,
    prompter: PrompterLike | None,
    cfg: dict[str, Any],
    *,
    assume_yes: bool = False,
    log: LogFn | None = None,
) -> list[Outcome]:
    """Find members without package.json and initialize the chosen ones."""
    logf = log or _noop
    missing = find_missing_manifests(state)
    if not missing:
        logger.debug("Every package directory has a package.json")
        return []

    logf(f"{len(missing)} package(s) without package.json: {', '.join(missing)}")
    if assume_yes:
        chosen = missing
    else:
        if prompter is None:
            return []
        if not prompter.confirm("Create a package.json for these packages?", default=True):
            return []
        chosen = prompter.checkbox("Select packages to initialize:", missing)
    if not chosen:
        return []

    return scaffold_manifests(
        state,
        chosen,
        init_command=config.get_init_command(cfg),
        timeout=config.get_git_timeout(cfg),
    )


def run_sync(
    root: Path,
    cfg: dict[str, Any],
    prompter: PrompterLike,
    options: SyncOptions | None = None,
    *,
    log: LogFn | None = None,
) -> RunReport:
    """Run the full sync flow.

    Raises:
        ManifestError: If the root package.json is missing or unparsable.
        UsageError: If no account name can be resolved.
        CatalogError: If the catalog cannot be fetched.
    """
    logf = log or _noop
    opts = options or SyncOptions()
    report = RunReport()

    state = load_state(root, cfg)

    account = opts.account or prompt_account(prompter)
    if not account:
        raise UsageError("No username provided and no default Git username found.")

    catalog = fetch_catalog(
        account,
        api_url=cfg.get("api_url", config.DEFAULT_CONFIG["api_url"]),
        timeout=cfg.get("http_timeout", config.DEFAULT_CONFIG["http_timeout"]),
    )
    if not catalog:
        report.notice = f"No repositories found for user '{account}' or user does not exist."
        return report

    if opts.select_all:
        urls = list(catalog)
    else:
        urls = resolve_selection(
            catalog,
            select=lambda choices: prompter.checkbox(
                "Select repositories you want to use:", choices
            ),
            confirm_all=lambda: prompter.confirm(
                "Are you sure you want to clone all the repositories?"
            ),
            retries=int(cfg.get("selection_retries", 1)),
        )
    if not urls:
        report.notice = "No repositories selected."
        return report

    sources = to_sources(urls)
    if not sources:
        report.notice = "No usable repositories selected."
        return report
    report.extend(
        materialize_all(
            sources,
            state.packages_path,
            jobs=opts.jobs or config.get_jobs(cfg),
            timeout=config.get_git_timeout(cfg),
        )
    )

    reconciled = reconcile_workspaces(state)
    report.workspaces_added = reconciled.added

    report.extend(run_scaffold(state, prompter, cfg, assume_yes=opts.assume_yes, log=logf))

    prefix = opts.prefix or prompt_prefix(prompter, sources[0].name, logf)
    logf(f"Selected prefix for commands: {prefix}")
    commands = opts.commands or prompt_commands(prompter, cfg.get("default_commands") or [], logf)
    style = opts.style or config.get_key_style(cfg)

    report.merge = merge_commands(state, commands, prefix=prefix, style=style)
    return report


def format_report(report: RunReport) -> str:
    """Format a run report for display."""
    lines: list[str] = []
    if report.notice:
        lines.append(report.notice)

    labels = {
        Action.CLONE: "Cloned",
        Action.UPDATE: "Updated",
        Action.SCAFFOLD: "Initialized",
    }
    for action, label in labels.items():
        done = [o.name for o in report.by_action(action) if o.ok]
        if done:
            lines.append(f"{label}: {', '.join(done)}")

    if report.workspaces_added:
        lines.append(f"Workspaces added: {', '.join(report.workspaces_added)}")

    merge: MergeResult | None = report.merge
    if merge is not None:
        if merge.root_scripts:
            lines.append(f"Root scripts: {', '.join(merge.root_scripts)}")
        if merge.updated:
            lines.append(f"Package scripts updated: {', '.join(merge.updated)}")
        if merge.skipped:
            lines.append(f"Skipped (no package.json): {', '.join(merge.skipped)}")
        if merge.failed:
            lines.append(f"Failed to update package.json: {', '.join(merge.failed)}")

    failed: list[Err] = report.failed
    if failed:
        lines.append(f"Failed ({len(failed)}):")
        for err in failed:
            lines.append(f"  {err.action} {err.name} [{err.kind}]: {err.detail}")

    return "\n".join(lines)
