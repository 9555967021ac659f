"""Helpers shared by the command line front-end."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional

import click
from rich.table import Table

from inspo.ingestion import Asset
from inspo.state import Vault, VaultRegistry
from inspo.undo import CleanupReport
from inspo.vaults import ConfirmationDecision, DestructiveAction, DownloadSummary


class ClickConfirmationPrompt:
    """Ask for confirmation of empty/delete operations on the terminal."""

    def confirm(self, action: DestructiveAction, vault: Vault) -> ConfirmationDecision:
        verb = "Empty" if action is DestructiveAction.EMPTY_VAULT else "Delete"
        question = (
            f"{verb} vault '{vault.display_name}' ({vault.image_count} images)? "
            "Files can be restored with undo for a limited time."
        )
        if not click.confirm(question, default=False):
            return ConfirmationDecision(accepted=False)
        dont_ask_again = click.confirm("Don't ask again?", default=False)
        return ConfirmationDecision(accepted=True, dont_ask_again=dont_ask_again)


class ClickDestinationPicker:
    """Prompt for download destinations on the terminal."""

    def choose_directory(self, suggested: Optional[Path]) -> Optional[Path]:
        value = click.prompt(
            "Download to",
            default=str(suggested) if suggested else None,
            type=click.Path(file_okay=False, path_type=Path),
        )
        return Path(value) if value else None

    def choose_file(self, suggested: Path) -> Optional[Path]:
        value = click.prompt(
            "Save as",
            default=str(suggested),
            type=click.Path(dir_okay=False, path_type=Path),
        )
        return Path(value) if value else None


def resolve_vault(registry: VaultRegistry, reference: str) -> Vault:
    """Return the vault matching an id, a unique id prefix, or a name.

    Raises:
        click.ClickException: If nothing or more than one vault matches.
    """
    if reference in registry:
        return registry.get(reference)

    by_prefix = [vault for vault in registry if vault.id.startswith(reference)]
    if len(by_prefix) == 1:
        return by_prefix[0]

    lowered = reference.casefold()
    by_name = [vault for vault in registry if vault.name.casefold() == lowered]
    if len(by_name) == 1:
        return by_name[0]
    if len(by_prefix) > 1 or len(by_name) > 1:
        raise click.ClickException(f"'{reference}' matches more than one vault; use its id.")
    raise click.ClickException(f"No vault matches '{reference}'.")


def resolve_asset(assets: Iterable[Asset], filename: str) -> Asset:
    """Return the asset named ``filename``.

    Raises:
        click.ClickException: If the vault holds no such file.
    """
    for asset in assets:
        if asset.filename == filename:
            return asset
    raise click.ClickException(f"No file named '{filename}' in this vault.")


def vault_table(vaults: Iterable[Vault], current_id: Optional[str]) -> Table:
    table = Table(title="Vaults")
    table.add_column("", width=1)
    table.add_column("Name")
    table.add_column("Id", style="dim")
    table.add_column("Images", justify="right")
    table.add_column("Created")
    for vault in vaults:
        table.add_row(
            "*" if vault.id == current_id else "",
            vault.display_name,
            vault.id[:8],
            str(vault.image_count),
            vault.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    return table


def asset_table(vault: Vault, assets: Iterable[Asset]) -> Table:
    table = Table(title=vault.display_name)
    table.add_column("File")
    table.add_column("Kind")
    table.add_column("Added")
    for asset in assets:
        table.add_row(
            asset.filename,
            asset.kind.value,
            asset.date_added.strftime("%Y-%m-%d %H:%M"),
        )
    return table


def vault_payload(vault: Vault, current_id: Optional[str]) -> dict[str, Any]:
    payload = vault.model_dump(mode="json", by_alias=True)
    payload["current"] = vault.id == current_id
    return payload


def download_summary_line(summary: DownloadSummary) -> str:
    return (
        f"[green]Download summary for {summary.destination}: copied={len(summary.copied)}, "
        f"skipped={len(summary.skipped)}, failed={len(summary.failed)}.[/green]"
    )


def cleanup_summary_line(report: CleanupReport) -> str:
    return (
        f"[green]Cleanup summary: expired_assets={report.expired_assets}, "
        f"expired_vaults={report.expired_vaults}, "
        f"removed_files={len(report.removed_files)}.[/green]"
    )


__all__ = [
    "ClickConfirmationPrompt",
    "ClickDestinationPicker",
    "resolve_vault",
    "resolve_asset",
    "vault_table",
    "asset_table",
    "vault_payload",
    "download_summary_line",
    "cleanup_summary_line",
]
