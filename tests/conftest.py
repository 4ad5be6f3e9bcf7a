"""
Shared test fixtures — catalogs, engines, test client.
"""

import copy
import json
import os

import pytest
from fastapi.testclient import TestClient

# Pin engine settings before importing app modules
os.environ["CONFIGURATOR_DEEP_VALIDATION"] = "false"
os.environ["CONFIGURATOR_DERIVE_CONFIGURED"] = "true"
os.environ["CONFIGURATOR_DEFAULT_CATALOG_PATH"] = ""

from configurator.catalog import DEFAULT_CATALOG_FILE
from configurator.engine import ConfiguratorEngine
from configurator.main import app
from configurator.routers import configurator as configurator_router
from configurator.schemas import Catalog


def _sample_document():
    """The bundled default catalog as a plain dict."""
    with open(DEFAULT_CATALOG_FILE) as f:
        return json.load(f)


def _small_document():
    """One step, one required sub-item, one optional sub-item with no products."""
    return {
        "productInfo": {"name": "Mini", "subtitle": "Test", "salesPrice": 0, "currency": "EUR"},
        "steps": [{"id": "hardware", "label": "Hardware"}],
        "subItems": {
            "hardware": [
                {"id": "server-nodes", "label": "Server Nodes"},
                {"id": "cables", "label": "Cables"},
                {"id": "step-review", "label": "Step Review"},
            ],
        },
        "products": {
            "server-nodes": [{
                "id": "node-a",
                "name": "Enterprise Node A",
                "description": "",
                "basePrice": 1500,
                "modules": {
                    "compute": {
                        "label": "Compute Module",
                        "description": "",
                        "required": True,
                        "type": "single-select",
                        "defaultSelection": "cpu-8",
                        "options": [
                            {"id": "cpu-8", "label": "8-Core", "description": "", "price": 0, "details": []},
                            {"id": "cpu-16", "label": "16-Core", "description": "", "price": 800, "details": []},
                        ],
                    },
                    "storage": {
                        "label": "Storage",
                        "description": "",
                        "required": True,
                        "type": "multi-select-quantity",
                        "defaultSelections": [{"optionId": "ssd", "quantity": 1}],
                        "options": [
                            {"id": "ssd", "label": "SSD", "description": "", "price": 150,
                             "maxQuantity": 4, "details": []},
                            {"id": "hdd", "label": "HDD", "description": "", "price": 80,
                             "maxQuantity": 8, "details": []},
                        ],
                    },
                },
            }],
        },
    }


@pytest.fixture
def document():
    return copy.deepcopy(_sample_document())


@pytest.fixture
def small_document():
    return _small_document()


@pytest.fixture
def catalog(document):
    return Catalog.model_validate(document)


@pytest.fixture
def small_catalog(small_document):
    return Catalog.model_validate(small_document)


@pytest.fixture
def engine():
    """Fresh engine on the default catalog."""
    return ConfiguratorEngine(deep_validation=False, derive_configured=True)


@pytest.fixture
def small_engine(small_catalog):
    return ConfiguratorEngine(catalog=small_catalog, deep_validation=False, derive_configured=True)


@pytest.fixture
def client():
    """FastAPI test client over a freshly reset singleton engine."""
    configurator_router.engine.reset_all()
    return TestClient(app)
