"""Supplement inventory expiry tracking with AI sales advice."""

from .advisor import AdvisorBackend, create_backend
from .advisor.service import InventoryAdvisor, analyze_inventory
from .config import AdvisorConfig, AppConfig, StorageConfig, load_config
from .db import ProductStore
from .expiry import WARNING_WINDOW_DAYS, classify_expiry, days_until_expiry
from .models import (
    AnalysisResult,
    ExpiryStatus,
    Product,
    ProductCategory,
    Suggestion,
)
from .stats import InventoryStats, compute_stats

__all__ = [
    "Product",
    "ProductCategory",
    "ExpiryStatus",
    "AnalysisResult",
    "Suggestion",
    "WARNING_WINDOW_DAYS",
    "classify_expiry",
    "days_until_expiry",
    "InventoryStats",
    "compute_stats",
    "ProductStore",
    "AdvisorBackend",
    "create_backend",
    "InventoryAdvisor",
    "analyze_inventory",
    "AppConfig",
    "AdvisorConfig",
    "StorageConfig",
    "load_config",
]
