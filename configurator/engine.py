"""
Configurator Engine — the single entry point a presentation layer talks to.

Owns exactly one (Catalog, ConfigurationStore) pair. A catalog replacement
builds the new pair completely and then swaps it in with one assignment, so
no caller can observe a new catalog next to a stale store. Pricing and
validation are computed on demand from the current pair.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from . import catalog as catalog_io
from .config import settings
from .exceptions import (
    CatalogStructureError,
    ConfiguratorError,
    ModuleTypeError,
    UnknownOptionError,
    UnknownProductError,
)
from .pricing_engine import PricingEngine
from .schemas import Catalog, ModuleType, PositionStatus, Product, Selection
from .store import ConfigurationStore, rebase_pointer
from .validation_engine import MessageSummary, ValidationEngine, sort_messages

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineState:
    catalog: Catalog
    store: ConfigurationStore


@dataclass
class LoadResult:
    """Outcome of a catalog load: the accepted catalog, or the typed reason it was refused."""
    ok: bool
    catalog: Optional[Catalog] = None
    error: Optional[ConfiguratorError] = None


class ConfiguratorEngine:
    """
    One configuration session.

    Args:
        catalog: initial catalog; the default catalog when omitted
        deep_validation: run deep nested checks on every load (settings.DEEP_VALIDATION)
        derive_configured: derive selection completeness from required modules
            (settings.DERIVE_CONFIGURED)
    """

    def __init__(self, catalog: Optional[Catalog] = None,
                 deep_validation: Optional[bool] = None,
                 derive_configured: Optional[bool] = None):
        self.deep_validation = (
            settings.DEEP_VALIDATION if deep_validation is None else deep_validation
        )
        self.derive_configured = (
            settings.DERIVE_CONFIGURED if derive_configured is None else derive_configured
        )
        self.pricing = PricingEngine()
        self._state = self._build_state(catalog or self._default_catalog())

    # --- State ---

    @property
    def catalog(self) -> Catalog:
        return self._state.catalog

    @property
    def store(self) -> ConfigurationStore:
        return self._state.store

    def _build_state(self, catalog: Catalog) -> EngineState:
        store = ConfigurationStore.from_catalog(catalog, derive_configured=self.derive_configured)
        return EngineState(catalog=catalog, store=store)

    def _default_catalog(self) -> Catalog:
        return catalog_io.load_default_catalog(settings.DEFAULT_CATALOG_PATH)

    # --- Catalog load / save ---

    def try_load_catalog(self, raw: bytes) -> LoadResult:
        """
        Parse, validate and install a catalog document.

        Never raises for bad input: parse and structural failures come back as
        LoadResult(ok=False, error=...) and the current catalog and store are
        left untouched.
        """
        try:
            candidate = catalog_io.parse_document(raw)
        except ConfiguratorError as e:
            logger.warning("Catalog rejected: %s", e.message)
            return LoadResult(ok=False, error=e)
        return self.load_catalog(candidate)

    def load_catalog(self, candidate) -> LoadResult:
        """Same as try_load_catalog, for an already-decoded document."""
        try:
            new_catalog = catalog_io.parse_catalog(candidate, deep=self.deep_validation)
        except CatalogStructureError as e:
            logger.warning("Catalog rejected: [%s] %s", e.code, e.message)
            return LoadResult(ok=False, error=e)

        self._state = self._build_state(new_catalog)
        logger.info(
            "Catalog accepted: %s (%d steps, %d positions)",
            new_catalog.product_info.name,
            len(new_catalog.steps),
            len(new_catalog.positions()),
        )
        return LoadResult(ok=True, catalog=new_catalog)

    def serialize_catalog(self) -> bytes:
        return catalog_io.serialize_catalog(self.catalog)

    def export_filename(self, today: Optional[date] = None) -> str:
        return catalog_io.export_filename(settings.EXPORT_FILENAME_PREFIX, today)

    def reset_all(self, catalog: Optional[Catalog] = None) -> None:
        """Rebuild the store, discarding every selection. No catalog → default catalog."""
        self._state = self._build_state(catalog or self._default_catalog())

    # --- Selections ---

    def add_selection(self, category: str, sub_item: str, product_id: str) -> int:
        """Add a cataloged product to a position. Returns the new selection's index."""
        self.store.entry(category, sub_item)
        product = self.catalog.find_product(sub_item, product_id)
        if product is None:
            raise UnknownProductError(sub_item, product_id)
        return self.store.add_selection(category, sub_item, product)

    def add_product(self, category: str, sub_item: str, product: Product) -> int:
        return self.store.add_selection(category, sub_item, product)

    def update_selection(self, category: str, sub_item: str, index: int, patch: dict) -> Selection:
        return self.store.update_selection(category, sub_item, index, patch)

    def remove_selection(self, category: str, sub_item: str, index: int,
                         pointer: Optional[int] = None) -> Optional[int]:
        """
        Remove a selection and return `pointer` re-anchored to the shifted sequence.

        The pointer is whatever index the caller is holding (e.g. the selection
        open in an editor); None stays None.
        """
        self.store.remove_selection(category, sub_item, index)
        return rebase_pointer(index, pointer)

    def replace_selections(self, category: str, sub_item: str, selections: list) -> None:
        """Install imported selections as-is (dicts or Selection objects)."""
        parsed = [
            s if isinstance(s, Selection) else Selection.model_validate(s)
            for s in selections
        ]
        self.store.replace_selections(category, sub_item, parsed)

    def select_option(self, category: str, sub_item: str, index: int,
                      module_id: str, option_id: str) -> Selection:
        """Pick the option of a SingleSelect module."""
        selection = self.store.get_selection(category, sub_item, index)
        module = self._module(selection, module_id)
        if not module.is_single_select:
            raise ModuleTypeError(module_id, module.type, ModuleType.SINGLE_SELECT.value)
        if module.find_option(option_id) is None:
            raise UnknownOptionError("UNKNOWN_OPTION", module_id=module_id, option_id=option_id)

        config = dict(selection.config)
        config[module_id] = option_id
        return self.store.update_selection(category, sub_item, index, {"config": config})

    def set_option_quantity(self, category: str, sub_item: str, index: int,
                            module_id: str, option_id: str, quantity: int) -> Selection:
        """
        Set how many of a MultiSelectQuantity option the selection carries.

        Clamped to 0..maxQuantity. Existing entries are updated in place (and
        kept at 0); new ones are appended.
        """
        selection = self.store.get_selection(category, sub_item, index)
        module = self._module(selection, module_id)
        if not module.is_multi_select:
            raise ModuleTypeError(module_id, module.type, ModuleType.MULTI_SELECT_QUANTITY.value)
        option = module.find_option(option_id)
        if option is None:
            raise UnknownOptionError("UNKNOWN_OPTION", module_id=module_id, option_id=option_id)

        quantity = max(0, quantity)
        if option.max_quantity is not None:
            quantity = min(option.max_quantity, quantity)

        current = selection.config.get(module_id)
        entries = [
            {"optionId": e.option_id, "quantity": e.quantity}
            for e in (current if isinstance(current, list) else [])
        ]
        for entry in entries:
            if entry["optionId"] == option_id:
                entry["quantity"] = quantity
                break
        else:
            entries.append({"optionId": option_id, "quantity": quantity})

        config = dict(selection.config)
        config[module_id] = entries
        return self.store.update_selection(category, sub_item, index, {"config": config})

    def _module(self, selection: Selection, module_id: str):
        module = selection.product.modules.get(module_id)
        if module is None:
            raise UnknownOptionError(
                "UNKNOWN_MODULE",
                f"Product {selection.product_id!r} has no module {module_id!r}",
                module_id=module_id,
            )
        return module

    # --- Read side ---

    def price(self, product: Product, config: Optional[dict], quantity: Optional[int] = 1) -> float:
        return self.pricing.price(product, config, quantity)

    def selection_price(self, category: str, sub_item: str, index: int) -> float:
        return self.pricing.selection_total(self.store.get_selection(category, sub_item, index))

    def grand_total(self) -> float:
        return self.pricing.grand_total(self.store)

    def summary(self) -> dict:
        return self.pricing.build_summary(self.catalog, self.store)

    def validator(self) -> ValidationEngine:
        state = self._state
        return ValidationEngine(state.catalog, state.store)

    def get_validation_status(self, category: str, sub_item: str) -> PositionStatus:
        return self.validator().get_validation_status(category, sub_item)

    def collect_messages(self) -> list:
        """All messages in display order (errors, warnings, infos)."""
        return sort_messages(self.validator().collect_messages())

    def overall_status(self) -> PositionStatus:
        return self.validator().overall_status()

    def message_summary(self, limit: Optional[int] = None) -> MessageSummary:
        if limit is None:
            limit = settings.MESSAGE_DISPLAY_LIMIT
        return self.validator().summarize(limit)
