# Catalog Services
"""
Services package for the combat engine.

Provides loading of the effect, feat and equipment reference catalogs.
"""

from .catalog_loader import (
    CatalogLoader,
    build_catalogs,
    get_default_catalogs,
    load_catalogs,
)

__all__ = [
    'CatalogLoader',
    'build_catalogs',
    'get_default_catalogs',
    'load_catalogs',
]
