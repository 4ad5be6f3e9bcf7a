"""
Catalog Schema & Validator tests.

Tests:
1-4.   Shallow structure check (validate / check_structure)
5-6.   Shape parsing into catalog models
7-11.  Deep validation
12-14. Document parse and serialize round trip
15.    Export file name
"""

import json
from datetime import date

import pytest

from configurator import catalog as catalog_io
from configurator.exceptions import CatalogParseError, CatalogStructureError
from configurator.schemas import Catalog, STEP_REVIEW_ID


# ============================================================
# 1-4. Shallow structure
# ============================================================

def test_default_catalog_passes_shallow_check(document):
    assert catalog_io.validate(document) is True


def test_non_object_rejected():
    for candidate in (None, [], "catalog", 42):
        assert catalog_io.validate(candidate) is False
    with pytest.raises(CatalogStructureError) as exc:
        catalog_io.check_structure([])
    assert exc.value.code == "NOT_AN_OBJECT"


def test_missing_key_names_the_section(document):
    del document["products"]
    assert catalog_io.validate(document) is False
    with pytest.raises(CatalogStructureError) as exc:
        catalog_io.check_structure(document)
    assert exc.value.code == "MISSING_KEY"
    assert exc.value.field == "products"
    assert "products" in exc.value.message


def test_wrong_type_is_distinct_from_missing(document):
    document["steps"] = {"hardware": "Hardware"}
    with pytest.raises(CatalogStructureError) as exc:
        catalog_io.check_structure(document)
    assert exc.value.code == "WRONG_TYPE"
    assert exc.value.field == "steps"

    document["steps"] = []
    document["productInfo"] = None
    with pytest.raises(CatalogStructureError) as exc:
        catalog_io.check_structure(document)
    assert exc.value.field == "productInfo"


def test_shallow_check_ignores_nested_shapes():
    """Only the four sections are inspected; nested content is not."""
    candidate = {"productInfo": {}, "steps": [], "subItems": {}, "products": {"x": "not a list"}}
    assert catalog_io.validate(candidate) is True


# ============================================================
# 5-6. Shape
# ============================================================

def test_parse_catalog_builds_models(document):
    catalog = catalog_io.parse_catalog(document)
    assert catalog.product_info.name == "PowerStore"
    assert [s.id for s in catalog.steps] == ["hardware", "software", "services", "review"]
    node = catalog.find_product("server-nodes", "node-a")
    assert node.base_price == 1500
    assert node.modules["storage"].options[0].max_quantity == 4


def test_parse_catalog_rejects_unusable_nested_shape():
    candidate = {"productInfo": {}, "steps": [], "subItems": {}, "products": {"x": "not a list"}}
    with pytest.raises(CatalogStructureError) as exc:
        catalog_io.parse_catalog(candidate)
    assert exc.value.code == "INVALID_SHAPE"
    assert exc.value.data["issues"]


def test_positions_skip_review_sentinel(catalog):
    positions = catalog.positions()
    assert ("hardware", "server-nodes") in positions
    assert all(sub_item != STEP_REVIEW_ID for _, sub_item in positions)
    assert len(positions) == 9


# ============================================================
# 7-11. Deep validation
# ============================================================

def test_default_catalog_passes_deep_validation(catalog):
    assert catalog_io.deep_validation_issues(catalog) == []


def test_deep_rejects_unknown_module_type(document):
    document["products"]["server-nodes"][0]["modules"]["compute"]["type"] = "radio"
    # Shallow mode accepts it
    catalog_io.parse_catalog(document)
    with pytest.raises(CatalogStructureError) as exc:
        catalog_io.parse_catalog(document, deep=True)
    assert exc.value.code == "INVALID_NESTED"
    assert any("unknown module type" in i for i in exc.value.data["issues"])


def test_deep_rejects_empty_options(document):
    document["products"]["operating-system"][0]["modules"]["edition"]["options"] = []
    issues = catalog_io.deep_validation_issues(Catalog.model_validate(document))
    assert issues == ["operating-system/enterprise-linux/edition: module has no options"]


def test_deep_rejects_dangling_default(document):
    modules = document["products"]["server-nodes"][0]["modules"]
    modules["compute"]["defaultSelection"] = "cpu-128core"
    modules["storage"]["defaultSelections"] = [{"optionId": "tape", "quantity": 1}]
    issues = catalog_io.deep_validation_issues(Catalog.model_validate(document))
    assert len(issues) == 2
    assert "cpu-128core" in issues[0]
    assert "tape" in issues[1]


def test_deep_requires_max_quantity(document):
    options = document["products"]["server-nodes"][0]["modules"]["storage"]["options"]
    del options[0]["maxQuantity"]
    options[1]["maxQuantity"] = 0
    issues = catalog_io.deep_validation_issues(Catalog.model_validate(document))
    assert len(issues) == 2
    assert all("maxQuantity" in i for i in issues)


# ============================================================
# 12-14. Parse / serialize
# ============================================================

def test_parse_document_reports_json_errors():
    with pytest.raises(CatalogParseError) as exc:
        catalog_io.parse_document(b'{"productInfo": ')
    assert exc.value.code == "PARSE_ERROR"
    assert "line" in exc.value.data

    with pytest.raises(CatalogParseError):
        catalog_io.parse_document(b"\xff\xfe\x00")


def test_serialize_round_trip(catalog, document):
    raw = catalog_io.serialize_catalog(catalog)
    reloaded = catalog_io.parse_catalog(catalog_io.parse_document(raw))
    assert reloaded == catalog
    assert json.loads(raw) == document
    # Re-emitting our own output is byte-for-byte stable
    assert catalog_io.serialize_catalog(reloaded) == raw


def test_serialize_keeps_unknown_fields_and_adds_nothing(small_document):
    small_document["productInfo"]["region"] = "EU"
    small_document["products"]["server-nodes"][0]["sku"] = "N-A-001"
    del small_document["products"]["server-nodes"][0]["description"]
    catalog = catalog_io.parse_catalog(small_document)
    emitted = json.loads(catalog_io.serialize_catalog(catalog))
    assert emitted == small_document
    assert "description" not in emitted["products"]["server-nodes"][0]


# ============================================================
# 15. Export file name
# ============================================================

def test_export_filename():
    assert (
        catalog_io.export_filename("infrastructure-config", date(2026, 3, 9))
        == "infrastructure-config-2026-03-09.json"
    )


def test_load_default_catalog_returns_independent_copies():
    first = catalog_io.load_default_catalog()
    second = catalog_io.load_default_catalog()
    assert first == second
    assert first is not second


def test_load_catalog_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        catalog_io.load_catalog_file(tmp_path / "nope.json")
