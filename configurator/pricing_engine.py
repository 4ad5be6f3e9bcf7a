"""
Price Calculator.

Pure math, never fails. Unit price = base price + option deltas; the overall
quantity multiplies the whole configured unit, not just the base.

Config values may come from a stale product copy. An option id that no
longer resolves contributes nothing.
"""

from dataclasses import asdict, dataclass
from typing import Optional

from .schemas import (
    Catalog,
    MultiSelectionConfig,
    Product,
    Selection,
    SingleSelectionConfig,
    read_module_config,
)


@dataclass
class PriceLine:
    """One resolved option in a selection's breakdown."""
    module_id: str
    module_label: str
    option_id: str
    option_label: str
    unit_price: float
    quantity: int
    amount: float


class PricingEngine:
    """
    Prices products, selections and whole configurations.

    Summation follows module then option declaration order so breakdowns
    display reproducibly.
    """

    def price(self, product: Product, config: Optional[dict], quantity: Optional[int] = 1) -> float:
        """(base price + option deltas) × max(quantity, 1)."""
        return self.unit_price(product, config) * max(quantity or 1, 1)

    def unit_price(self, product: Product, config: Optional[dict]) -> float:
        total = product.base_price
        for line in self.breakdown(product, config):
            total += line.amount
        return total

    def breakdown(self, product: Product, config: Optional[dict]) -> list[PriceLine]:
        """Resolved option lines for one unit of the product, in declaration order."""
        if not config:
            return []

        lines = []
        for module_id, module in product.modules.items():
            module_config = read_module_config(module, config.get(module_id))

            if isinstance(module_config, SingleSelectionConfig):
                option = module.find_option(module_config.option_id)
                if option:
                    lines.append(PriceLine(
                        module_id=module_id,
                        module_label=module.label,
                        option_id=option.id,
                        option_label=option.label,
                        unit_price=option.price,
                        quantity=1,
                        amount=option.price,
                    ))

            elif isinstance(module_config, MultiSelectionConfig):
                # Entries follow option declaration order, not the order they were added
                by_option = {}
                for entry in module_config.entries:
                    by_option[entry.option_id] = by_option.get(entry.option_id, 0) + entry.quantity
                for option in module.options:
                    qty = by_option.get(option.id)
                    if qty is None:
                        continue
                    lines.append(PriceLine(
                        module_id=module_id,
                        module_label=module.label,
                        option_id=option.id,
                        option_label=option.label,
                        unit_price=option.price,
                        quantity=qty,
                        amount=option.price * qty,
                    ))
        return lines

    def selection_total(self, selection: Selection) -> float:
        return self.price(selection.product, selection.config, selection.quantity)

    def sub_item_total(self, store, category: str, sub_item: str) -> float:
        entry = store.get_entry(category, sub_item)
        if entry is None:
            return 0
        return sum(self.selection_total(s) for s in entry.selections)

    def category_total(self, store, category: str) -> float:
        return sum(
            self.sub_item_total(store, category, sub_item)
            for sub_item in store.entries.get(category, {})
        )

    def grand_total(self, store) -> float:
        return sum(self.category_total(store, category) for category in store.entries)

    def build_summary(self, catalog: Catalog, store) -> dict:
        """
        Priced summary of everything currently selected.

        Returns:
            {
                "currency": str,
                "sales_price": number,     # display-only catalog figure
                "categories": [{category, label, total, sub_items: [...]}],
                "grand_total": number,
            }
        Sub-items with no selections are omitted.
        """
        step_labels = {step.id: step.label for step in catalog.steps}
        categories = []

        for category, sub_items in store.entries.items():
            sub_item_rows = []
            for sub_item, entry in sub_items.items():
                if not entry.selections:
                    continue
                rows = []
                for index, selection in enumerate(entry.selections):
                    rows.append({
                        "index": index,
                        "product_id": selection.product_id,
                        "product_name": selection.product.name,
                        "base_price": selection.product.base_price,
                        "quantity": selection.quantity,
                        "unit_price": self.unit_price(selection.product, selection.config),
                        "total": self.selection_total(selection),
                        "lines": [
                            asdict(line)
                            for line in self.breakdown(selection.product, selection.config)
                        ],
                    })
                sub_item_rows.append({
                    "sub_item": sub_item,
                    "label": catalog.sub_item_label(category, sub_item),
                    "selections": rows,
                    "total": sum(row["total"] for row in rows),
                })
            if sub_item_rows:
                categories.append({
                    "category": category,
                    "label": step_labels.get(category, category),
                    "sub_items": sub_item_rows,
                    "total": sum(row["total"] for row in sub_item_rows),
                })

        return {
            "currency": catalog.product_info.currency,
            "sales_price": catalog.product_info.sales_price,
            "categories": categories,
            "grand_total": self.grand_total(store),
        }
