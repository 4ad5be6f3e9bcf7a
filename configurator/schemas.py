"""
Catalog, selection and message models.

The catalog models mirror the exchanged JSON document (camelCase on the wire,
snake_case in Python). Unknown keys are kept so a loaded document re-emits
unchanged; fields the document did not carry are not invented on export.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

# Sub-item id that marks a step's review page, never configurable
STEP_REVIEW_ID = "step-review"

Number = Union[int, float]


class ModuleType(str, Enum):
    SINGLE_SELECT = "single-select"
    MULTI_SELECT_QUANTITY = "multi-select-quantity"


class PositionStatus(str, Enum):
    INCOMPLETE = "incomplete"
    ERROR = "error"
    WARNING = "warning"
    VALID = "valid"


class MessageType(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CatalogModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


# --- Catalog document ---

class ProductInfo(CatalogModel):
    name: str = ""
    subtitle: str = ""
    sales_price: Number = 0  # display only, never summed
    currency: str = "USD"


class Step(CatalogModel):
    id: str
    label: str = ""


class SubItem(CatalogModel):
    id: str
    label: str = ""


class OptionQuantity(CatalogModel):
    option_id: str
    quantity: int = 1


class Option(CatalogModel):
    id: str
    label: str = ""
    description: str = ""
    price: Number = 0
    details: list[str] = Field(default_factory=list)
    max_quantity: Optional[int] = None  # MultiSelectQuantity only


class Module(CatalogModel):
    label: str = ""
    description: str = ""
    required: bool = False
    # Plain string so a shallow load keeps unknown tags; see ModuleType
    type: str
    default_selection: Optional[str] = None
    default_selections: Optional[list[OptionQuantity]] = None
    options: list[Option] = Field(default_factory=list)

    @property
    def is_single_select(self) -> bool:
        return self.type == ModuleType.SINGLE_SELECT

    @property
    def is_multi_select(self) -> bool:
        return self.type == ModuleType.MULTI_SELECT_QUANTITY

    def find_option(self, option_id: str) -> Optional[Option]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


class Product(CatalogModel):
    id: str
    name: str = ""
    description: str = ""
    base_price: Number = 0
    modules: dict[str, Module] = Field(default_factory=dict)

    @property
    def required_modules(self) -> dict[str, Module]:
        return {mid: m for mid, m in self.modules.items() if m.required}


class Catalog(CatalogModel):
    """The four-section catalog document. Replaced wholesale, never edited."""

    product_info: ProductInfo
    steps: list[Step]
    sub_items: dict[str, list[SubItem]]
    products: dict[str, list[Product]]

    def positions(self) -> list[tuple[str, str]]:
        """(category, sub_item) pairs in document order, review pages excluded."""
        return [
            (category, item.id)
            for category, items in self.sub_items.items()
            for item in items
            if item.id != STEP_REVIEW_ID
        ]

    def sub_item_label(self, category: str, sub_item: str) -> str:
        for item in self.sub_items.get(category, []):
            if item.id == sub_item:
                return item.label or sub_item
        return sub_item

    def products_for(self, sub_item: str) -> list[Product]:
        return self.products.get(sub_item, [])

    def find_product(self, sub_item: str, product_id: str) -> Optional[Product]:
        for product in self.products_for(sub_item):
            if product.id == product_id:
                return product
        return None

    def has_required_elements(self, sub_item: str) -> bool:
        """Does any product offered under this sub-item declare a required module?"""
        return any(product.required_modules for product in self.products_for(sub_item))


# --- Module configuration variants ---

@dataclass(frozen=True)
class SingleSelectionConfig:
    option_id: str


@dataclass(frozen=True)
class MultiSelectionConfig:
    entries: tuple[OptionQuantity, ...]


ModuleConfig = Union[SingleSelectionConfig, MultiSelectionConfig]

# Raw value stored per module id in Selection.config
ConfigValue = Union[str, list[OptionQuantity]]


def read_module_config(module: Module, value) -> Optional[ModuleConfig]:
    """
    Interpret a raw config value according to the module's declared type.

    Returns None when the value's shape does not match the type, or the type
    is not one of the known variants. Malformed multi-select entries are
    dropped individually.
    """
    if value is None:
        return None
    if module.is_single_select:
        if isinstance(value, str):
            return SingleSelectionConfig(value)
        return None
    if module.is_multi_select:
        if not isinstance(value, (list, tuple)):
            return None
        entries = []
        for item in value:
            if isinstance(item, OptionQuantity):
                entries.append(item)
                continue
            try:
                entries.append(OptionQuantity.model_validate(item))
            except ValidationError:
                continue
        return MultiSelectionConfig(tuple(entries))
    return None


# --- Session state ---

class Selection(BaseModel):
    """One product instance added to a sub-item. Owns its product copy."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    product_id: str
    product: Product
    config: dict[str, ConfigValue] = Field(default_factory=dict)
    quantity: int = 1
    configured: bool = True


class SelectionPatch(BaseModel):
    """Fields a caller may merge into an existing selection."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    config: Optional[dict[str, ConfigValue]] = None
    quantity: Optional[int] = None
    configured: Optional[bool] = None


class SubItemEntry(BaseModel):
    selections: list[Selection] = Field(default_factory=list)
    # Derived: len(selections) > 0 and all selections configured
    configured: bool = False


class Message(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: MessageType
    category: str
    sub_item: str
    title: str
    message: str
    severity: Severity
    selection_index: Optional[int] = None
