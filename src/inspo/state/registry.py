"""Ordered vault list and the current-vault pointer."""

from __future__ import annotations

import json
import logging
from typing import Iterator, List, Optional

from pydantic import TypeAdapter, ValidationError

from inspo.errors import NotFoundError, StorageIOError
from inspo.storage import StorageLayout

from .models import DEFAULT_VAULT_NAME, Vault
from .preferences import PreferenceStore

LOGGER = logging.getLogger(__name__)

_VAULT_LIST = TypeAdapter(List[Vault])


class VaultRegistry:
    """Single source of truth for the ordered vault list.

    The list is persisted as one JSON array in ``vaults.json``. Persistence
    failures are logged and degrade the registry to in-memory state; no
    operation raises because a save failed.
    """

    def __init__(self, layout: StorageLayout, preferences: PreferenceStore) -> None:
        self._layout = layout
        self._preferences = preferences
        self._vaults: list[Vault] = []

    # ------------------------------------------------------------------ #
    # Lookups                                                            #
    # ------------------------------------------------------------------ #

    @property
    def vaults(self) -> tuple[Vault, ...]:
        """Return the vaults in display order."""
        return tuple(self._vaults)

    def __len__(self) -> int:
        return len(self._vaults)

    def __iter__(self) -> Iterator[Vault]:
        return iter(tuple(self._vaults))

    def __contains__(self, vault_id: object) -> bool:
        return any(vault.id == vault_id for vault in self._vaults)

    def get(self, vault_id: str) -> Vault:
        """Return the vault with ``vault_id``.

        Raises:
            NotFoundError: If no such vault is registered.
        """
        for vault in self._vaults:
            if vault.id == vault_id:
                return vault
        raise NotFoundError(f"No vault with id {vault_id}")

    def index_of(self, vault_id: str) -> int:
        """Return the position of ``vault_id`` in the ordered list."""
        for index, vault in enumerate(self._vaults):
            if vault.id == vault_id:
                return index
        raise NotFoundError(f"No vault with id {vault_id}")

    # ------------------------------------------------------------------ #
    # Persistence                                                        #
    # ------------------------------------------------------------------ #

    def load(self) -> tuple[Vault, ...]:
        """Read the vault list, bootstrapping the default vault when unusable.

        Returns:
            tuple[Vault, ...]: Loaded vaults; never empty.
        """
        self._vaults = []
        try:
            path = self._layout.metadata_path()
            if path.exists():
                self._vaults = _VAULT_LIST.validate_json(path.read_text(encoding="utf-8"))
            else:
                LOGGER.info("No vault list at %s; creating the default vault.", path)
        except (OSError, StorageIOError, ValidationError, ValueError) as exc:
            LOGGER.warning("Unable to read vault list, falling back to default: %s", exc)
            self._vaults = []

        if not self._vaults:
            self.bootstrap_default()
        return self.vaults

    def save(self) -> bool:
        """Overwrite the vault list document with the in-memory list.

        Returns:
            bool: ``True`` when the document was written.
        """
        payload = _VAULT_LIST.dump_python(self._vaults, mode="json", by_alias=True)
        try:
            path = self._layout.metadata_path()
            path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except (OSError, StorageIOError) as exc:
            LOGGER.warning("Unable to save vault list; keeping in-memory state: %s", exc)
            return False
        return True

    # ------------------------------------------------------------------ #
    # Mutations                                                          #
    # ------------------------------------------------------------------ #

    def create(self, name: str = "") -> Vault:
        """Append a new empty vault, persist the list, and create its directory."""
        vault = Vault(name=name)
        self._vaults.append(vault)
        self.save()
        try:
            self._layout.vault_directory(vault.id)
        except StorageIOError:
            LOGGER.warning("Directory for vault %s will be created on first use.", vault.id)
        LOGGER.debug("Created vault %s (%r)", vault.id, name)
        return vault

    def bootstrap_default(self) -> Vault:
        """Create the default "All Images" vault and make it current."""
        vault = self.create(DEFAULT_VAULT_NAME)
        self.set_current(vault.id)
        LOGGER.info("Bootstrapped default vault %s", vault.id)
        return vault

    def rename(self, vault_id: str, new_name: str) -> Vault:
        """Rename a vault in place and persist."""
        vault = self.get(vault_id)
        vault.name = new_name
        self.save()
        return vault

    def remove(self, vault_id: str) -> Vault:
        """Remove a vault record (not its directory) and persist."""
        vault = self.get(vault_id)
        self._vaults.remove(vault)
        self.save()
        return vault

    def insert(self, vault: Vault, position: Optional[int] = None) -> Vault:
        """Re-insert a vault record at ``position`` (end when omitted) and persist."""
        if vault.id in self:
            return self.get(vault.id)
        if position is None or position > len(self._vaults):
            position = len(self._vaults)
        self._vaults.insert(max(0, position), vault)
        self.save()
        return vault

    def update_count(self, vault_id: str, count: int) -> None:
        """Correct the cached asset count of a vault, persisting only on change."""
        vault = self.get(vault_id)
        count = max(0, count)
        if vault.image_count != count:
            vault.image_count = count
            self.save()

    def adjust_count(self, vault_id: str, delta: int) -> None:
        """Shift the cached asset count of a vault by ``delta``."""
        vault = self.get(vault_id)
        self.update_count(vault_id, vault.image_count + delta)

    # ------------------------------------------------------------------ #
    # Current vault                                                      #
    # ------------------------------------------------------------------ #

    def set_current(self, vault_id: str) -> None:
        """Remember ``vault_id`` as the current vault."""
        self._preferences.update(current_vault_id=vault_id)

    def current(self) -> Vault:
        """Return the current vault, repairing a stale pointer if needed."""
        remembered = self._preferences.preferences.current_vault_id
        if remembered is not None and remembered in self:
            return self.get(remembered)
        if not self._vaults:
            return self.bootstrap_default()
        vault = self._vaults[0]
        self.set_current(vault.id)
        return vault


__all__ = ["VaultRegistry"]
