"""
Catalog Schema & Validator — gates every catalog replacement.

Three levels of checking, applied in order:
1. Shallow structure: the four top-level sections exist with the right
   container types. This alone decides `validate()`.
2. Shape: the document parses into the catalog models.
3. Deep (opt-in): module types, options, defaults and maxQuantity caps.

Parse and serialize are the engine's only file-format boundary.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .exceptions import CatalogParseError, CatalogStructureError
from .schemas import Catalog, ModuleType

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_CATALOG_FILE = DATA_DIR / "default_catalog.json"

# Section name → (container type, description used in error messages)
REQUIRED_SECTIONS = {
    "productInfo": (dict, "an object"),
    "steps": (list, "an array"),
    "subItems": (dict, "an object"),
    "products": (dict, "an object"),
}


def check_structure(candidate) -> None:
    """Raise CatalogStructureError naming the first problem found."""
    if not isinstance(candidate, dict):
        raise CatalogStructureError(
            "NOT_AN_OBJECT",
            f"Catalog document must be an object, got {type(candidate).__name__}",
            expected="object",
        )

    missing = [key for key in REQUIRED_SECTIONS if key not in candidate]
    if missing:
        raise CatalogStructureError(
            "MISSING_KEY",
            "Invalid configuration file structure: missing required section(s) "
            f"{', '.join(missing)}. Required: {', '.join(REQUIRED_SECTIONS)}.",
            field=missing[0],
            missing=missing,
        )

    for key, (container, description) in REQUIRED_SECTIONS.items():
        if not isinstance(candidate[key], container):
            raise CatalogStructureError(
                "WRONG_TYPE",
                f"Section {key!r} must be {description}, "
                f"got {type(candidate[key]).__name__}",
                field=key,
                expected=description,
            )


def validate(candidate) -> bool:
    """Shallow structural check — True if the four sections are present and typed."""
    try:
        check_structure(candidate)
    except CatalogStructureError:
        return False
    return True


def deep_validation_issues(catalog: Catalog) -> list[str]:
    """
    Check nested product data the calculator and validator rely on.

    Returns one human-readable issue per problem; empty means the catalog
    is safe to price.
    """
    issues = []
    known_types = {t.value for t in ModuleType}

    for sub_item, products in catalog.products.items():
        for product in products:
            where = f"{sub_item}/{product.id}"
            if product.base_price < 0:
                issues.append(f"{where}: basePrice must be non-negative")

            for module_id, module in product.modules.items():
                mwhere = f"{where}/{module_id}"
                if module.type not in known_types:
                    issues.append(
                        f"{mwhere}: unknown module type {module.type!r} "
                        f"(expected one of {', '.join(sorted(known_types))})"
                    )
                    continue
                if not module.options:
                    issues.append(f"{mwhere}: module has no options")
                    continue

                option_ids = [option.id for option in module.options]
                duplicates = sorted({oid for oid in option_ids if option_ids.count(oid) > 1})
                if duplicates:
                    issues.append(f"{mwhere}: duplicate option ids {', '.join(duplicates)}")

                if module.is_single_select:
                    if module.default_selection and module.default_selection not in option_ids:
                        issues.append(
                            f"{mwhere}: default option {module.default_selection!r} does not exist"
                        )
                    continue

                for option in module.options:
                    if option.max_quantity is None or option.max_quantity < 1:
                        issues.append(f"{mwhere}/{option.id}: maxQuantity must be present and >= 1")
                for entry in module.default_selections or []:
                    option = module.find_option(entry.option_id)
                    if option is None:
                        issues.append(
                            f"{mwhere}: default option {entry.option_id!r} does not exist"
                        )
                    elif entry.quantity < 1 or (
                        option.max_quantity is not None and entry.quantity > option.max_quantity
                    ):
                        issues.append(
                            f"{mwhere}: default quantity {entry.quantity} for "
                            f"{entry.option_id!r} outside 1..{option.max_quantity}"
                        )
    return issues


def parse_catalog(candidate, deep: bool = False) -> Catalog:
    """Validate a decoded document and build the Catalog. Raises CatalogStructureError."""
    check_structure(candidate)

    try:
        catalog = Catalog.model_validate(candidate)
    except ValidationError as e:
        issues = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise CatalogStructureError(
            "INVALID_SHAPE",
            f"Catalog contents do not match the schema ({len(issues)} problem"
            f"{'s' if len(issues) != 1 else ''})",
            issues=issues,
        ) from e

    if deep:
        issues = deep_validation_issues(catalog)
        if issues:
            raise CatalogStructureError(
                "INVALID_NESTED",
                f"Catalog failed deep validation: {issues[0]}"
                + (f" (+{len(issues) - 1} more)" if len(issues) > 1 else ""),
                issues=issues,
            )

    return catalog


def parse_document(raw: bytes) -> object:
    """Decode raw bytes into a JSON value. Raises CatalogParseError."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CatalogParseError(f"Failed to decode file as UTF-8: {e}") from e
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise CatalogParseError(
            f"Failed to parse JSON file: {e.msg}",
            line=e.lineno,
            column=e.colno,
        ) from e


def catalog_to_document(catalog: Catalog) -> dict:
    """The exchanged document: only what was loaded, no derived fields."""
    return catalog.model_dump(mode="json", by_alias=True, exclude_unset=True)


def serialize_catalog(catalog: Catalog) -> bytes:
    return json.dumps(catalog_to_document(catalog), indent=2).encode("utf-8")


def export_filename(prefix: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{prefix}-{today.isoformat()}.json"


def load_catalog_file(path, deep: bool = False) -> Catalog:
    """Load a catalog document from disk (start-up / reset only)."""
    filepath = Path(path)
    if not filepath.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")
    catalog = parse_catalog(parse_document(filepath.read_bytes()), deep=deep)
    logger.info("Loaded catalog %s from %s", catalog.product_info.name, filepath)
    return catalog


def load_default_catalog(path: str = "") -> Catalog:
    """The configured default catalog, or the bundled one. A fresh copy every call."""
    return load_catalog_file(path or DEFAULT_CATALOG_FILE)
