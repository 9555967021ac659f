"""Command line interface for the Visual Inspiration library."""

from __future__ import annotations

import difflib
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn, Optional

import click
import yaml
from rich.console import Console
from rich.syntax import Syntax

from inspo.cli_support import (
    ClickConfirmationPrompt,
    ClickDestinationPicker,
    asset_table,
    cleanup_summary_line,
    download_summary_line,
    resolve_asset,
    resolve_vault,
    vault_payload,
    vault_table,
)
from inspo.config import ConfigError, ConfigManager, flatten_for_env
from inspo.errors import InspoError
from inspo.ingestion import Asset, sort_by_recency
from inspo.library import InspirationLibrary
from inspo.state import Vault
from inspo.undo import UndoOutcome
from inspo.vaults import OperationResult

console = Console()


@dataclass
class _CliState:
    """Objects shared by the commands of one invocation or session."""

    config_path: Optional[Path] = None
    interactive: bool = False
    library: Optional[InspirationLibrary] = None


def _handle_cli_error(message: str, *, original: Exception | None = None) -> NoReturn:
    """Surface ``message`` as a click error, chaining ``original``.

    Raises:
        click.ClickException: Always.
    """
    if isinstance(original, click.ClickException):
        raise original
    raise click.ClickException(message) from original


def _config_manager(ctx: click.Context) -> ConfigManager:
    state = ctx.ensure_object(_CliState)
    return ConfigManager(state.config_path)


def _library(ctx: click.Context) -> InspirationLibrary:
    """Return the open library of this invocation, opening it on first use.

    One-shot commands close the library with their context; a session keeps
    it (and its undo journal) alive until the session ends.
    """
    state = ctx.ensure_object(_CliState)
    if state.library is not None:
        return state.library

    try:
        settings = _config_manager(ctx).load()
    except ConfigError as exc:
        _handle_cli_error(str(exc), original=exc)

    library = InspirationLibrary(
        settings,
        prompt=ClickConfirmationPrompt(),
        picker=ClickDestinationPicker(),
    )
    try:
        library.open(background=state.interactive)
    except InspoError as exc:
        library.close()
        _handle_cli_error(f"Unable to open the library: {exc}", original=exc)

    state.library = library
    if not state.interactive:

        def _close() -> None:
            library.close()
            state.library = None

        ctx.call_on_close(_close)
    return library


def _target_vault(library: InspirationLibrary, reference: Optional[str]) -> Vault:
    if reference is None:
        return library.operations.current
    return resolve_vault(library.registry, reference)


def _assets_of(library: InspirationLibrary, vault: Vault) -> list[Asset]:
    if vault.id == library.operations.current.id:
        return library.operations.assets
    return sort_by_recency(library.loader.list_assets(vault.id))


def _undo_hint(ctx: click.Context, available: bool, what: str) -> None:
    """Point at `undo` while a session keeps the deletion restorable."""
    state = ctx.ensure_object(_CliState)
    if not (state.interactive and available and state.library is not None):
        return
    minutes = int(state.library.undo.window.total_seconds() // 60)
    console.print(f"[dim]Run '{what}' within {minutes} minutes to restore it.[/dim]")


def _report(result: OperationResult, success: str) -> None:
    if result.cancelled:
        console.print("[yellow]Cancelled; nothing was changed.[/yellow]")
        return
    if not result.ok:
        _handle_cli_error(
            f"{result.error} ({result.processed} files processed before stopping)."
        )
    console.print(success)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="inspo")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="INSPO_CONFIG",
    help="Configuration file to use instead of ~/.inspo/config.yaml.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]) -> None:
    """Collect visual inspiration into named vaults."""
    state = ctx.ensure_object(_CliState)
    if config_path is not None and state.library is None:
        state.config_path = config_path


# ---------------------------------------------------------------------- #
# Vaults                                                                  #
# ---------------------------------------------------------------------- #


@cli.command("vaults")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON instead of a table.")
@click.pass_context
def list_vaults(ctx: click.Context, json_output: bool) -> None:
    """List vaults, marking the current one."""
    library = _library(ctx)
    current_id = library.operations.current.id
    if json_output:
        payload = [vault_payload(vault, current_id) for vault in library.registry]
        console.print_json(data={"vaults": payload})
        return
    console.print(vault_table(library.registry, current_id))


@cli.command()
@click.argument("name", required=False, default="")
@click.option("--switch", "switch_after", is_flag=True, help="Make the new vault current.")
@click.pass_context
def create(ctx: click.Context, name: str, switch_after: bool) -> None:
    """Create a vault named NAME."""
    library = _library(ctx)
    try:
        vault = library.operations.create_vault(name)
    except InspoError as exc:
        _handle_cli_error(str(exc), original=exc)
    if switch_after:
        library.operations.switch_to(vault)
    console.print(f"[green]Created vault {vault.display_name} ({vault.id[:8]}).[/green]")


@cli.command()
@click.argument("vault_ref", metavar="VAULT")
@click.argument("name")
@click.pass_context
def rename(ctx: click.Context, vault_ref: str, name: str) -> None:
    """Rename VAULT to NAME."""
    library = _library(ctx)
    vault = resolve_vault(library.registry, vault_ref)
    try:
        renamed = library.operations.rename_vault(vault, name)
    except InspoError as exc:
        _handle_cli_error(str(exc), original=exc)
    console.print(f"[green]Renamed {vault.display_name} to {renamed.display_name}.[/green]")


@cli.command()
@click.argument("vault_ref", metavar="VAULT")
@click.pass_context
def switch(ctx: click.Context, vault_ref: str) -> None:
    """Make VAULT the current vault."""
    library = _library(ctx)
    vault = resolve_vault(library.registry, vault_ref)
    try:
        active = library.operations.switch_to(vault)
    except InspoError as exc:
        _handle_cli_error(str(exc), original=exc)
    count = len(library.operations.assets)
    console.print(f"[green]Switched to {active.display_name} ({count} files).[/green]")


@cli.command()
@click.argument("vault_ref", metavar="VAULT", required=False)
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_context
def empty(ctx: click.Context, vault_ref: Optional[str], yes: bool) -> None:
    """Delete every file of VAULT (default: the current vault)."""
    library = _library(ctx)
    vault = _target_vault(library, vault_ref)
    operations = library.operations
    prompt = operations.prompt
    if yes:
        operations.prompt = None
    try:
        result = operations.empty_vault(vault)
    finally:
        operations.prompt = prompt
    _report(result, f"[green]Emptied {vault.display_name} ({result.processed} files).[/green]")


@cli.command("delete-vault")
@click.argument("vault_ref", metavar="VAULT")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_context
def delete_vault(ctx: click.Context, vault_ref: str, yes: bool) -> None:
    """Delete VAULT together with its files."""
    library = _library(ctx)
    vault = resolve_vault(library.registry, vault_ref)
    operations = library.operations
    prompt = operations.prompt
    if yes:
        operations.prompt = None
    try:
        result = operations.delete_vault(vault)
    finally:
        operations.prompt = prompt
    _report(
        result,
        f"[green]Deleted {vault.display_name} ({result.processed} files backed up).[/green]",
    )
    if result.ok:
        _undo_hint(ctx, library.undo.can_undo_vault, "undo --vault")


# ---------------------------------------------------------------------- #
# Assets                                                                  #
# ---------------------------------------------------------------------- #


@cli.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--vault", "vault_ref", help="Switch to this vault before adding.")
@click.pass_context
def add(ctx: click.Context, files: tuple[Path, ...], vault_ref: Optional[str]) -> None:
    """Copy FILES into the current vault."""
    library = _library(ctx)
    if vault_ref is not None:
        library.operations.switch_to(resolve_vault(library.registry, vault_ref))

    failures = 0
    for path in files:
        try:
            asset = library.operations.save_from_path(path)
        except InspoError as exc:
            failures += 1
            console.print(f"[red]{path}: {exc}[/red]")
            continue
        console.print(f"Added {asset.filename}")

    vault = library.operations.current
    console.print(
        f"[green]Add summary for {vault.display_name}: added={len(files) - failures}, "
        f"failed={failures}.[/green]"
    )
    if failures:
        _handle_cli_error(f"{failures} files could not be added.")


@cli.command()
@click.option("--extension", default="png", show_default=True, help="Extension of the data.")
@click.pass_context
def paste(ctx: click.Context, extension: str) -> None:
    """Save media bytes read from standard input into the current vault."""
    library = _library(ctx)
    data = click.get_binary_stream("stdin").read()
    if not data:
        _handle_cli_error("No data on standard input.")
    try:
        asset = library.operations.save_from_bytes(data, extension)
    except InspoError as exc:
        _handle_cli_error(str(exc), original=exc)
    console.print(f"[green]Saved {asset.filename}.[/green]")


@cli.command("ls")
@click.option("--vault", "vault_ref", help="Vault to list (default: current).")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON instead of a table.")
@click.pass_context
def list_assets(ctx: click.Context, vault_ref: Optional[str], json_output: bool) -> None:
    """List the files of a vault, newest first."""
    library = _library(ctx)
    vault = _target_vault(library, vault_ref)
    assets = _assets_of(library, vault)
    if json_output:
        payload = [asset.model_dump(mode="json") for asset in assets]
        console.print_json(data={"vault": vault.id, "assets": payload})
        return
    console.print(asset_table(vault, assets))


@cli.command("rm")
@click.argument("filenames", nargs=-1, required=True)
@click.option("--vault", "vault_ref", help="Vault holding the files (default: current).")
@click.pass_context
def remove(ctx: click.Context, filenames: tuple[str, ...], vault_ref: Optional[str]) -> None:
    """Delete FILENAMES; each stays recoverable with `undo` for a while."""
    library = _library(ctx)
    vault = _target_vault(library, vault_ref)
    for filename in filenames:
        asset = resolve_asset(_assets_of(library, vault), filename)
        result = library.operations.delete_asset(asset)
        _report(result, f"Deleted {asset.filename}")
    _undo_hint(ctx, library.undo.can_undo_asset, "undo")


@cli.command()
@click.option("--vault", "vault_level", is_flag=True, help="Undo the last vault deletion.")
@click.pass_context
def undo(ctx: click.Context, vault_level: bool) -> None:
    """Undo the most recent file (or vault) deletion."""
    library = _library(ctx)
    if vault_level:
        result = library.operations.undo_vault_delete()
    else:
        result = library.operations.undo_asset_delete()

    if result.outcome is UndoOutcome.RESTORED:
        console.print(f"[green]{result.message}[/green]")
    elif result.outcome is UndoOutcome.FAILED:
        _handle_cli_error(result.message)
    else:
        console.print(f"[yellow]{result.message}[/yellow]")


@cli.command()
@click.option("--vault", "vault_ref", help="Vault to download (default: current).")
@click.option("--file", "filename", help="Download only this file.")
@click.option(
    "--dest",
    type=click.Path(path_type=Path),
    help="Destination directory (or file path with --file).",
)
@click.option("--remember", is_flag=True, help="Remember the destination directory.")
@click.pass_context
def download(
    ctx: click.Context,
    vault_ref: Optional[str],
    filename: Optional[str],
    dest: Optional[Path],
    remember: bool,
) -> None:
    """Copy vault files out of the library, skipping files that already exist."""
    library = _library(ctx)
    vault = _target_vault(library, vault_ref)
    if filename is not None:
        asset = resolve_asset(_assets_of(library, vault), filename)
        if dest is not None and dest.is_dir():
            dest = dest / asset.filename
        summary = library.operations.download_one(asset, dest)
    else:
        summary = library.operations.download_all(vault, dest, remember=remember)

    if summary.cancelled:
        console.print("[yellow]Download cancelled.[/yellow]")
        return
    for path in summary.skipped:
        console.print(f"[yellow]Skipped existing {path}[/yellow]")
    console.print(download_summary_line(summary))
    if summary.failed:
        _handle_cli_error(f"{len(summary.failed)} files could not be copied.")


@cli.command()
@click.argument("filename")
@click.option("--vault", "vault_ref", help="Vault holding the file (default: current).")
@click.option("--size", type=click.IntRange(min=16), help="Longest preview edge in pixels.")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where to write the preview.",
)
@click.pass_context
def thumb(
    ctx: click.Context,
    filename: str,
    vault_ref: Optional[str],
    size: Optional[int],
    output: Optional[Path],
) -> None:
    """Write the preview of FILENAME to disk."""
    library = _library(ctx)
    vault = _target_vault(library, vault_ref)
    asset = resolve_asset(_assets_of(library, vault), filename)
    thumbnail = library.thumbnails.get_or_create(asset.file_path, size).result()
    target = output or Path.cwd() / f"{asset.file_path.stem}.thumb.{thumbnail.format.lower()}"
    try:
        target.write_bytes(thumbnail.data)
    except OSError as exc:
        _handle_cli_error(f"Unable to write {target}: {exc}", original=exc)
    console.print(
        f"[green]Wrote {thumbnail.kind.value} preview {thumbnail.width}x{thumbnail.height} "
        f"to {target}.[/green]"
    )


@cli.command()
@click.pass_context
def cleanup(ctx: click.Context) -> None:
    """Purge expired undo entries and stale backup files."""
    library = _library(ctx)
    console.print(cleanup_summary_line(library.cleanup()))


# ---------------------------------------------------------------------- #
# Configuration                                                           #
# ---------------------------------------------------------------------- #


@cli.group()
def config() -> None:
    """Inspect and update configuration."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides.")
@click.option(
    "--env",
    "as_env",
    is_flag=True,
    help="Print the settings as INSPO__SECTION__KEY environment assignments.",
)
@click.pass_context
def config_view(ctx: click.Context, no_env: bool, as_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    manager = _config_manager(ctx)
    try:
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        _handle_cli_error(str(exc), original=exc)

    if as_env:
        for key, value in flatten_for_env(loaded).items():
            click.echo(f"{key}={value}")
        return

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY."""
    manager = _config_manager(ctx)
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        _handle_cli_error("KEY must specify a dotted path such as 'undo.window_seconds'.")

    try:
        manager.ensure_exists()
        before = manager.read_text().splitlines()
        manager.set_value(".".join(segments), value)
    except ConfigError as exc:
        _handle_cli_error(str(exc), original=exc)
    after = manager.read_text().splitlines()

    # The timestamp line always changes, so compare the settings only.
    changed = [line for line in before if not line.startswith("#")] != [
        line for line in after if not line.startswith("#")
    ]
    if not changed:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    diff = difflib.unified_diff(
        before,
        after,
        fromfile="config.yaml (before)",
        tofile="config.yaml (after)",
        lineterm="",
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


# ---------------------------------------------------------------------- #
# Interactive session                                                     #
# ---------------------------------------------------------------------- #


@cli.command()
@click.pass_context
def session(ctx: click.Context) -> None:
    """Run commands against one open library so deletions can be undone.

    Type commands without the ``inspo`` prefix; ``exit`` or end of input
    leaves the session.
    """
    state = ctx.ensure_object(_CliState)
    if state.interactive:
        _handle_cli_error("A session is already running.")

    state.interactive = True
    try:
        library = _library(ctx)
    except click.ClickException:
        state.interactive = False
        raise

    console.print(f"[green]Session open on {library.root}. Type 'exit' to leave.[/green]")
    try:
        while True:
            try:
                line = click.prompt(
                    "inspo", prompt_suffix="> ", default="", show_default=False
                ).strip()
            except click.Abort:
                break
            if not line:
                continue
            if line in {"exit", "quit"}:
                break
            try:
                args = shlex.split(line)
            except ValueError as exc:
                console.print(f"[red]{exc}[/red]")
                continue

            library.poll_changes()
            try:
                cli.main(args, prog_name="inspo", standalone_mode=False, obj=state)
            except click.ClickException as exc:
                exc.show()
            except click.Abort:
                console.print("[yellow]Aborted.[/yellow]")
    finally:
        library.close()
        state.library = None
        state.interactive = False


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
