"""
Default-Configuration Deriver — the module selections a newly added product starts with.
"""

from .schemas import Product


def derive_default_config(product: Product) -> dict:
    """
    Build {module_id: value} from each module's declared default.

    SingleSelect modules contribute their default option id; MultiSelectQuantity
    modules contribute a fresh copy of their default entries, so editing the
    result never reaches back into the catalog. Modules without a default are
    left out rather than defaulted to empty.
    """
    config = {}
    for module_id, module in product.modules.items():
        if module.is_single_select and module.default_selection:
            config[module_id] = module.default_selection
        elif module.is_multi_select and module.default_selections is not None:
            config[module_id] = [entry.model_copy() for entry in module.default_selections]
    return config
