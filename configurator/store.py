"""
Configuration Store — category → sub-item → ordered selections.

The only mutable state in the engine. Every mutation goes through here and
recomputes the owning entry's `configured` flag; nothing else writes it.
Index arguments are validated before any change is made.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from .default_config import derive_default_config
from .exceptions import SelectionIndexError, SelectionPatchError, UnknownPositionError
from .schemas import Catalog, Product, Selection, SelectionPatch, SubItemEntry
from .validation_engine import required_modules_resolved

logger = logging.getLogger(__name__)


def entry_configured(selections: list[Selection]) -> bool:
    return len(selections) > 0 and all(s.configured for s in selections)


def rebase_pointer(removed_index: int, pointer: Optional[int]) -> Optional[int]:
    """
    Re-anchor an index held into a sequence after removed_index was deleted.

    Equal → cleared (None); after the removed index → shifted down by one;
    before it, or no pointer at all → unchanged.
    """
    if pointer is None:
        return None
    if pointer == removed_index:
        return None
    if pointer > removed_index:
        return pointer - 1
    return pointer


class ConfigurationStore:
    """
    Selections per (category, sub-item) position.

    derive_configured: when True, a selection's `configured` flag is computed
    from its required modules on add and whenever its config changes; when
    False, added selections are always configured.
    """

    def __init__(self, entries: Optional[dict] = None, derive_configured: bool = True):
        self._entries: dict[str, dict[str, SubItemEntry]] = entries or {}
        self.derive_configured = derive_configured

    @classmethod
    def from_catalog(cls, catalog: Catalog, derive_configured: bool = True) -> "ConfigurationStore":
        store = cls(derive_configured=derive_configured)
        store.reset_all(catalog)
        return store

    @property
    def entries(self) -> dict[str, dict[str, SubItemEntry]]:
        return self._entries

    def get_entry(self, category: str, sub_item: str) -> Optional[SubItemEntry]:
        return self._entries.get(category, {}).get(sub_item)

    def entry(self, category: str, sub_item: str) -> SubItemEntry:
        entry = self.get_entry(category, sub_item)
        if entry is None:
            raise UnknownPositionError(category, sub_item)
        return entry

    def selections(self, category: str, sub_item: str) -> list[Selection]:
        return list(self.entry(category, sub_item).selections)

    def get_selection(self, category: str, sub_item: str, index: int) -> Selection:
        entry = self.entry(category, sub_item)
        self._check_index(category, sub_item, entry, index)
        return entry.selections[index]

    def snapshot(self) -> dict:
        """JSON-ready copy of every position; safe to hand to a presentation layer."""
        return {
            category: {
                sub_item: entry.model_dump(mode="json", by_alias=True)
                for sub_item, entry in sub_items.items()
            }
            for category, sub_items in self._entries.items()
        }

    # --- Mutations ---

    def reset_all(self, catalog: Catalog) -> None:
        """Discard all selections; one empty entry per non-review sub-item."""
        entries = {category: {} for category in catalog.sub_items}
        for category, sub_item in catalog.positions():
            entries[category][sub_item] = SubItemEntry()
        self._entries = entries
        logger.info("Configuration store reset (%d positions)", len(catalog.positions()))

    def add_selection(self, category: str, sub_item: str, product: Product) -> int:
        """Append a new selection of `product` with its default config. Returns its index."""
        entry = self.entry(category, sub_item)
        owned = product.model_copy(deep=True)
        config = derive_default_config(owned)
        configured = (
            required_modules_resolved(owned, config) if self.derive_configured else True
        )
        entry.selections.append(Selection(
            product_id=owned.id,
            product=owned,
            config=config,
            quantity=1,
            configured=configured,
        ))
        self._refresh(entry)
        index = len(entry.selections) - 1
        logger.info("Added %s to %s/%s at index %d", owned.id, category, sub_item, index)
        return index

    def update_selection(self, category: str, sub_item: str, index: int, patch: dict) -> Selection:
        """
        Merge `patch` (config / quantity / configured) into the selection at `index`.

        The patch is validated in full before the selection is replaced.
        """
        entry = self.entry(category, sub_item)
        self._check_index(category, sub_item, entry, index)

        try:
            parsed = SelectionPatch.model_validate(patch)
        except ValidationError as e:
            logger.warning("Rejected patch for %s/%s[%d]: %s", category, sub_item, index, e)
            raise SelectionPatchError(
                f"Invalid selection update: {e.error_count()} problem(s)",
                errors=[
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                ],
            ) from e

        # Explicit nulls mean "leave unchanged"
        updates = {}
        for name in parsed.model_fields_set:
            value = getattr(parsed, name)
            if value is not None:
                updates[name] = value

        current = entry.selections[index]
        updated = current.model_copy(update=updates)
        if "config" in updates and "configured" not in updates and self.derive_configured:
            updated.configured = required_modules_resolved(updated.product, updated.config)

        entry.selections[index] = updated
        self._refresh(entry)
        return updated

    def remove_selection(self, category: str, sub_item: str, index: int) -> Selection:
        """Delete the selection at `index`; later selections shift down by one."""
        entry = self.entry(category, sub_item)
        self._check_index(category, sub_item, entry, index)
        removed = entry.selections.pop(index)
        self._refresh(entry)
        logger.info("Removed %s from %s/%s index %d", removed.product_id, category, sub_item, index)
        return removed

    def replace_selections(self, category: str, sub_item: str, selections: list[Selection]) -> None:
        """Install selections as given (imported state); `configured` flags are kept."""
        entry = self.entry(category, sub_item)
        entry.selections = [s.model_copy(deep=True) for s in selections]
        self._refresh(entry)

    # --- Internal ---

    def _refresh(self, entry: SubItemEntry) -> None:
        entry.configured = entry_configured(entry.selections)

    def _check_index(self, category: str, sub_item: str, entry: SubItemEntry, index: int) -> None:
        if not isinstance(index, int) or not 0 <= index < len(entry.selections):
            raise SelectionIndexError(category, sub_item, index, len(entry.selections))
