"""Artisync CLI interface.

Commands:
- hook: Entry point called by the installed git hook scripts
- analyze: Print the impact report for a commit range (dry run)
- status: List idempotency records
- install / uninstall: Manage the git hook scripts
- init: Initialize Artisync configuration
- check: Validate git, repository and configuration

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log output
- --version: Show version and exit
"""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer

from artisync import __version__
from artisync.config import ArtisyncConfig, create_default_config, load_config
from artisync.errors import ArtisyncError, ConfigError, GitCommandError
from artisync.models.orchestration import HookEvent
from artisync.models.repository import STATE_DIR_NAME
from artisync.utils.git import GitClient
from artisync.utils.logging import configure_from_cli, get_logger, structured

# Create Typer app
app = typer.Typer(
    name="artisync",
    help="Keep derived repository artifacts in sync after merges and checkouts",
    add_completion=False,
    no_args_is_help=True,
)
hook_app = typer.Typer(
    name="hook",
    help="Run a git hook event (called by the installed hook scripts)",
    no_args_is_help=True,
)
app.add_typer(hook_app, name="hook")

# Global state
_config: ArtisyncConfig | None = None
_config_error: str | None = None
_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"artisync {__version__}")
        raise typer.Exit()


def _discover_git_root() -> Path:
    """Top level of the working tree containing the cwd (cwd outside a repository)."""
    cwd = Path.cwd()
    try:
        result = GitClient(cwd).run(["rev-parse", "--show-toplevel"], check=False)
    except GitCommandError:
        return cwd
    if result.returncode != 0 or not result.stdout.strip():
        return cwd
    return Path(result.stdout.strip())


def _exclude_runtime_files(config: ArtisyncConfig) -> None:
    from artisync.hooks.installer import exclude_runtime_files

    try:
        added = exclude_runtime_files(config)
    except (GitCommandError, OSError) as e:
        _logger.warning(f"Could not add runtime files to git's exclude list: {e}")
        return
    if added:
        _logger.info(f"Excluded runtime files from git: {', '.join(added)}")


def _require_config() -> ArtisyncConfig:
    if _config is None:
        _logger.error(_config_error or "Configuration not loaded")
        raise typer.Exit(1)
    return _config


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON output",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Artisync - cascade regeneration of derived artifacts.

    Runs from git's post-merge and post-checkout hooks, works out which
    artifacts the incoming commits touched, regenerates them once per commit
    and records the result as an attributed cascade commit.
    """
    global _config, _config_error

    # Configure logging based on CLI flags
    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    # Load configuration; `init` and `check` report a broken config themselves
    _config = None
    _config_error = None
    try:
        _config = load_config(config_path=config, git_root=_discover_git_root())
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except ConfigError as e:
        _config_error = str(e)


# =============================================================================
# hook commands
# =============================================================================


def _run_hook(event: HookEvent, args: list[str]) -> None:
    from artisync.hooks.executor import HookExecutor

    config = _require_config()
    outcome = HookExecutor(config).run(event, args)

    result = outcome.result
    if result is not None:
        structured(
            _logger,
            logging.INFO if outcome.exit_code == 0 else logging.ERROR,
            f"{event.value}: {result.reason}",
            event="hook_complete",
            exit_code=outcome.exit_code,
            cascade_commit=result.cascade_commit_sha,
        )
    raise typer.Exit(outcome.exit_code)


@hook_app.command("post-merge")
def hook_post_merge(
    squash: Annotated[
        str | None,
        typer.Argument(help="1 if the merge was a squash merge"),
    ] = None,
) -> None:
    """Handle git's post-merge hook.

    Exit codes:
        0: Success, nothing to do, or some artifacts failed
        1: Fatal failure
    """
    _run_hook(HookEvent.POST_MERGE, [squash] if squash is not None else [])


@hook_app.command("post-checkout")
def hook_post_checkout(
    previous_head: Annotated[str, typer.Argument(help="HEAD before the checkout")],
    new_head: Annotated[str, typer.Argument(help="HEAD after the checkout")],
    flag: Annotated[str, typer.Argument(help="1 for a branch checkout, 0 for a file checkout")],
) -> None:
    """Handle git's post-checkout hook.

    Exit codes:
        0: Success, nothing to do, or some artifacts failed
        1: Fatal failure
    """
    _run_hook(HookEvent.POST_CHECKOUT, [previous_head, new_head, flag])


# =============================================================================
# analyze command
# =============================================================================


@app.command()
def analyze(
    base: Annotated[str, typer.Argument(help="Base commit-ish")],
    head: Annotated[str, typer.Argument(help="Head commit-ish")] = "HEAD",
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output the report as JSON",
        ),
    ] = False,
) -> None:
    """Show which artifacts a commit range impacts, without running strategies.

    Exit codes:
        0: Report printed
        1: Invalid range or git failure
    """
    from artisync.analysis import ImpactAnalyzer, ReportFormatter, RuleSet
    from artisync.models.impact import CommitRange

    config = _require_config()
    analyzer = ImpactAnalyzer(GitClient(config.git_root), RuleSet.from_config(config.rules))

    try:
        report = analyzer.analyze(CommitRange(base=base, head=head))
    except ArtisyncError as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    formatter = ReportFormatter()
    if json_output:
        typer.echo(formatter.render_json(report))
    else:
        # The text template ends with its own newline
        typer.echo(formatter.render_text(report), nl=False)
    raise typer.Exit(0)


# =============================================================================
# status command
# =============================================================================


@app.command()
def status(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output records as JSON",
        ),
    ] = False,
    artifact: Annotated[
        str | None,
        typer.Option(
            "--artifact",
            "-a",
            help="Only show records for this artifact",
        ),
    ] = None,
) -> None:
    """List idempotency records (artifact, commit, status)."""
    from artisync.analysis.formatter import short_sha
    from artisync.tracking import IdempotencyStore

    config = _require_config()
    store = IdempotencyStore(config.idempotency_store_path)

    try:
        records = store.records()
    except ArtisyncError as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    if artifact:
        records = [r for r in records if r.artifact_id == artifact]

    if json_output:
        typer.echo(json.dumps([r.to_dict() for r in records], indent=2, sort_keys=True))
        raise typer.Exit(0)

    if not records:
        typer.echo("No idempotency records.")
        raise typer.Exit(0)

    for record in records:
        line = f"{record.status.value:<10} {short_sha(record.target_commit)}  {record.artifact_id}"
        if record.error:
            line += f"  ({record.error})"
        typer.echo(line)
    raise typer.Exit(0)


# =============================================================================
# install / uninstall commands
# =============================================================================


@app.command()
def install(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Back up and replace hooks not managed by artisync",
        ),
    ] = False,
) -> None:
    """Install the post-merge and post-checkout hook scripts."""
    from artisync.hooks.installer import HookInstaller

    config = _require_config()

    try:
        results = HookInstaller(GitClient(config.git_root)).install(force=force)
    except ArtisyncError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    _exclude_runtime_files(config)

    for item in results:
        typer.echo(f"{item.action:<10} {item.event.value}  {item.path}")
        if item.backup_path:
            typer.echo(f"           previous hook saved to {item.backup_path}")
    raise typer.Exit(0)


@app.command()
def uninstall() -> None:
    """Remove the hook scripts and restore any backed-up hooks."""
    from artisync.hooks.installer import HookInstaller

    config = _require_config()

    try:
        results = HookInstaller(GitClient(config.git_root)).uninstall()
    except ArtisyncError as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    for item in results:
        typer.echo(f"{item.action:<10} {item.event.value}  {item.path}")
    raise typer.Exit(0)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Initialize Artisync configuration.

    Creates .artisync/config.yaml in the repository root.
    """
    root = _config.git_root if _config else _discover_git_root()
    state_dir = root / STATE_DIR_NAME
    config_file = state_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    state_dir.mkdir(parents=True, exist_ok=True)
    config_file.write_text(create_default_config(), encoding="utf-8")
    _logger.info(f"Created config: {config_file}")
    _exclude_runtime_files(load_config(config_path=config_file, git_root=root))

    typer.echo("Artisync configuration initialized")
    typer.echo(f"   Config: {config_file}")
    typer.echo("   Next: add rules and strategies, then run `artisync install`")
    raise typer.Exit(0)


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results as JSON",
        ),
    ] = False,
) -> None:
    """Validate git, the repository and the configuration.

    Exit codes:
        0: All required checks passed
        1: One or more required checks failed
        2: Only optional checks failed (warnings)
    """
    from artisync.utils.preflight import PreflightChecker

    result = PreflightChecker().check_all(_config, config_error=_config_error)

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        raise typer.Exit(0 if result.success else 1)

    typer.echo("\nPreflight Check Results\n")
    for check_result in result.checks:
        mark = "ok" if check_result.available else ("FAIL" if check_result.required else "warn")
        version_str = f" ({check_result.version})" if check_result.version else ""
        typer.echo(f"  [{mark:^4}] {check_result.name}{version_str}")
        if check_result.message:
            typer.echo(f"         {check_result.message}")
    typer.echo()

    if result.errors:
        typer.echo("Preflight check FAILED")
        for error in result.errors:
            typer.echo(f"   - {error}")
        raise typer.Exit(1)
    elif result.warnings:
        typer.echo("Preflight check passed with WARNINGS")
        for warning in result.warnings:
            typer.echo(f"   - {warning}")
        raise typer.Exit(2)
    else:
        typer.echo("All preflight checks passed")
        raise typer.Exit(0)


if __name__ == "__main__":
    app()
