"""
Default-Configuration Deriver tests.
"""

from configurator.default_config import derive_default_config
from configurator.schemas import OptionQuantity, Product


def _product(modules):
    return Product.model_validate({"id": "p", "name": "P", "basePrice": 10, "modules": modules})


def test_defaults_for_both_module_types(catalog):
    node = catalog.find_product("server-nodes", "node-a")
    config = derive_default_config(node)
    assert config["compute"] == "cpu-8core-32gb"
    assert config["storage"] == [OptionQuantity(option_id="ssd-500gb", quantity=1)]


def test_modules_without_default_are_omitted():
    product = _product({
        "color": {"type": "single-select", "options": [{"id": "red"}]},
        "disks": {"type": "multi-select-quantity", "options": [{"id": "ssd", "maxQuantity": 2}]},
        "edition": {"type": "single-select", "defaultSelection": "std", "options": [{"id": "std"}]},
    })
    assert derive_default_config(product) == {"edition": "std"}


def test_unknown_module_type_contributes_nothing():
    product = _product({"x": {"type": "slider", "defaultSelection": "a", "options": [{"id": "a"}]}})
    assert derive_default_config(product) == {}


def test_derived_configs_are_independent(catalog):
    node = catalog.find_product("server-nodes", "node-a")
    first = derive_default_config(node)
    second = derive_default_config(node)

    first["storage"][0].quantity = 3
    first["storage"].append(OptionQuantity(option_id="hdd-2tb", quantity=2))

    assert second["storage"] == [OptionQuantity(option_id="ssd-500gb", quantity=1)]
    # The catalog's own defaults are untouched too
    assert node.modules["storage"].default_selections == [
        OptionQuantity(option_id="ssd-500gb", quantity=1)
    ]
