"""
Validation Engine — classifies each catalog position and explains why.

Nothing here is cached: every status and message is recomputed from the
current catalog and store on each call, so a reader can never see a verdict
that lags behind the selections it describes.
"""

from dataclasses import dataclass, field
from typing import Optional

from .schemas import (
    Catalog,
    Message,
    MessageType,
    MultiSelectionConfig,
    PositionStatus,
    Product,
    Selection,
    Severity,
    SingleSelectionConfig,
    read_module_config,
)

# Display order of message classes
MESSAGE_ORDER = {
    MessageType.ERROR: 0,
    MessageType.WARNING: 1,
    MessageType.INFO: 2,
}


def required_modules_resolved(product: Product, config: Optional[dict]) -> bool:
    """Every required module of the product has a value that resolves to an option."""
    config = config or {}
    for module_id, module in product.required_modules.items():
        module_config = read_module_config(module, config.get(module_id))
        if isinstance(module_config, SingleSelectionConfig):
            if module.find_option(module_config.option_id) is None:
                return False
        elif isinstance(module_config, MultiSelectionConfig):
            if not any(
                entry.quantity > 0 and module.find_option(entry.option_id)
                for entry in module_config.entries
            ):
                return False
        else:
            return False
    return True


def dangling_references(selection: Selection) -> list[str]:
    """Option ids in the selection's config that its product copy cannot resolve."""
    missing = []
    for module_id, value in selection.config.items():
        module = selection.product.modules.get(module_id)
        if module is None:
            continue
        module_config = read_module_config(module, value)
        if isinstance(module_config, SingleSelectionConfig):
            option_ids = [module_config.option_id]
        elif isinstance(module_config, MultiSelectionConfig):
            option_ids = [entry.option_id for entry in module_config.entries]
        else:
            continue
        missing.extend(oid for oid in option_ids if module.find_option(oid) is None)
    return missing


def sort_messages(messages: list[Message]) -> list[Message]:
    """Stable sort: errors, then warnings, then infos."""
    return sorted(messages, key=lambda m: MESSAGE_ORDER[m.type])


@dataclass
class MessageSummary:
    errors: int
    warnings: int
    infos: int
    messages: list[Message] = field(default_factory=list)
    remaining: int = 0

    @property
    def total(self) -> int:
        return self.errors + self.warnings + self.infos


class ValidationEngine:
    """Read-side classifier over one catalog and its configuration store."""

    def __init__(self, catalog: Catalog, store):
        self.catalog = catalog
        self.store = store

    def get_validation_status(self, category: str, sub_item: str) -> PositionStatus:
        """
        incomplete — no selections
        error      — some selection is not configured
        warning    — all configured, but a quantity < 1, an empty config,
                     or an option reference that no longer resolves
        valid      — otherwise
        """
        entry = self.store.get_entry(category, sub_item)
        if entry is None or not entry.selections:
            return PositionStatus.INCOMPLETE

        if any(not s.configured for s in entry.selections):
            return PositionStatus.ERROR

        if any(
            s.quantity < 1 or not s.config or dangling_references(s)
            for s in entry.selections
        ):
            return PositionStatus.WARNING

        return PositionStatus.VALID

    def get_all_statuses(self) -> dict[str, dict[str, PositionStatus]]:
        return {
            category: {
                sub_item: self.get_validation_status(category, sub_item)
                for sub_item in sub_items
            }
            for category, sub_items in self.store.entries.items()
        }

    def collect_messages(self) -> list[Message]:
        """Messages for every position, in store order (unsorted)."""
        messages = []
        for category, sub_items in self.store.entries.items():
            for sub_item, entry in sub_items.items():
                messages.extend(self._position_messages(category, sub_item, entry))
        return messages

    def _position_messages(self, category: str, sub_item: str, entry) -> list[Message]:
        status = self.get_validation_status(category, sub_item)
        label = self.catalog.sub_item_label(category, sub_item)

        if status == PositionStatus.INCOMPLETE:
            if self.catalog.has_required_elements(sub_item):
                return [Message(
                    type=MessageType.ERROR,
                    category=category,
                    sub_item=sub_item,
                    title=f"{label} required",
                    message="This section is mandatory and needs configuration",
                    severity=Severity.HIGH,
                )]
            return [Message(
                type=MessageType.INFO,
                category=category,
                sub_item=sub_item,
                title=f"{label} available",
                message="Optional section ready for configuration",
                severity=Severity.LOW,
            )]

        messages = []
        if status == PositionStatus.ERROR:
            for index, selection in enumerate(entry.selections):
                if not selection.configured:
                    messages.append(Message(
                        type=MessageType.ERROR,
                        category=category,
                        sub_item=sub_item,
                        title=f"{selection.product.name} incomplete",
                        message="Required configuration options are missing",
                        severity=Severity.HIGH,
                        selection_index=index,
                    ))

        elif status == PositionStatus.WARNING:
            for index, selection in enumerate(entry.selections):
                if selection.quantity < 1:
                    messages.append(Message(
                        type=MessageType.WARNING,
                        category=category,
                        sub_item=sub_item,
                        title=f"{selection.product.name} quantity issue",
                        message="Quantity should be at least 1",
                        severity=Severity.MEDIUM,
                        selection_index=index,
                    ))
                missing = dangling_references(selection)
                if missing:
                    messages.append(Message(
                        type=MessageType.WARNING,
                        category=category,
                        sub_item=sub_item,
                        title=f"{selection.product.name} has unknown options",
                        message=f"Options no longer available: {', '.join(missing)}",
                        severity=Severity.MEDIUM,
                        selection_index=index,
                    ))
        return messages

    def required_positions_configured(self) -> bool:
        """Every position with required elements has ≥1 selection, all configured."""
        for category, sub_items in self.store.entries.items():
            for sub_item, entry in sub_items.items():
                if not self.catalog.has_required_elements(sub_item):
                    continue
                if not entry.selections or not all(s.configured for s in entry.selections):
                    return False
        return True

    def overall_status(self) -> PositionStatus:
        messages = self.collect_messages()
        if any(m.type == MessageType.ERROR for m in messages):
            return PositionStatus.ERROR
        if any(m.type == MessageType.WARNING for m in messages):
            return PositionStatus.WARNING
        if not self.required_positions_configured():
            return PositionStatus.INCOMPLETE
        return PositionStatus.VALID

    def summarize(self, limit: int) -> MessageSummary:
        """Counts plus the first `limit` messages in display order."""
        messages = sort_messages(self.collect_messages())
        limit = max(limit, 0)
        return MessageSummary(
            errors=sum(1 for m in messages if m.type == MessageType.ERROR),
            warnings=sum(1 for m in messages if m.type == MessageType.WARNING),
            infos=sum(1 for m in messages if m.type == MessageType.INFO),
            messages=messages[:limit],
            remaining=max(len(messages) - limit, 0),
        )
