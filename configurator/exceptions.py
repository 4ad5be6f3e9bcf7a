"""
Configurator exceptions.

Every failure the engine reports is a ConfiguratorError carrying a stable
code, a human message and structured data. Catalog loading converts these
into a LoadResult instead of raising; mutations raise them before any state
is touched.
"""

from typing import Any


ERROR_MESSAGES = {
    "PARSE_ERROR": "Failed to parse catalog document",
    "NOT_AN_OBJECT": "Catalog document must be an object",
    "MISSING_KEY": "Catalog document is missing a required section",
    "WRONG_TYPE": "Catalog section has the wrong type",
    "INVALID_SHAPE": "Catalog contents do not match the catalog schema",
    "INVALID_NESTED": "Catalog products failed deep validation",
    "INDEX_OUT_OF_RANGE": "Selection index out of range",
    "UNKNOWN_POSITION": "Unknown category or sub-item",
    "UNKNOWN_PRODUCT": "Product is not available for this sub-item",
    "UNKNOWN_MODULE": "Module does not exist on this product",
    "UNKNOWN_OPTION": "Option does not exist on this module",
    "MODULE_TYPE_MISMATCH": "Operation does not apply to this module type",
    "INVALID_PATCH": "Invalid selection update",
}


class ConfiguratorError(Exception):
    """
    Structured exception for configurator operations.

    Usage:
        try:
            engine.update_selection("hardware", "server-nodes", 3, {"quantity": 2})
        except ConfiguratorError as e:
            if e.code == "INDEX_OUT_OF_RANGE":
                print(f"No selection at {e.data['index']}")
    """

    def __init__(self, code: str, message: str = "", **data: Any) -> None:
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data,
        }


class CatalogParseError(ConfiguratorError):
    """Raw bytes are not a well-formed JSON document."""

    def __init__(self, message: str = "", **data: Any) -> None:
        super().__init__("PARSE_ERROR", message, **data)


class CatalogStructureError(ConfiguratorError):
    """A parsed document is not an acceptable catalog."""

    @property
    def field(self) -> str | None:
        return self.data.get("field")


class SelectionIndexError(ConfiguratorError, IndexError):
    def __init__(self, category: str, sub_item: str, index: int, size: int) -> None:
        super().__init__(
            "INDEX_OUT_OF_RANGE",
            f"Selection index {index} out of range for {category}/{sub_item} "
            f"({size} selection{'s' if size != 1 else ''})",
            category=category,
            sub_item=sub_item,
            index=index,
            size=size,
        )


class UnknownPositionError(ConfiguratorError):
    def __init__(self, category: str, sub_item: str) -> None:
        super().__init__(
            "UNKNOWN_POSITION",
            f"No configurable sub-item {sub_item!r} under {category!r}",
            category=category,
            sub_item=sub_item,
        )


class UnknownProductError(ConfiguratorError):
    def __init__(self, sub_item: str, product_id: str) -> None:
        super().__init__(
            "UNKNOWN_PRODUCT",
            f"Product {product_id!r} is not cataloged under {sub_item!r}",
            sub_item=sub_item,
            product_id=product_id,
        )


class UnknownOptionError(ConfiguratorError):
    """Module or option reference that does not resolve on a selection's product."""


class SelectionPatchError(ConfiguratorError):
    def __init__(self, message: str = "", **data: Any) -> None:
        super().__init__("INVALID_PATCH", message, **data)


class ModuleTypeError(ConfiguratorError):
    """Option helper used on a module of the other type."""

    def __init__(self, module_id: str, module_type: str, expected: str) -> None:
        super().__init__(
            "MODULE_TYPE_MISMATCH",
            f"Module {module_id!r} is {module_type}, not {expected}",
            module_id=module_id,
            module_type=module_type,
            expected=expected,
        )
