"""Catalog-driven infrastructure configurator: selections, pricing and validation."""

from .engine import ConfiguratorEngine, LoadResult
from .pricing_engine import PricingEngine
from .validation_engine import ValidationEngine

__all__ = ["ConfiguratorEngine", "LoadResult", "PricingEngine", "ValidationEngine"]
