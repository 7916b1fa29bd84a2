"""
Catalog acquisition: the full Steam {id, name} list with multi-source
fallback, on-disk backup and single-flight refresh.
"""

from .models import Catalog, CatalogCache, CatalogEntry, CatalogSource
from .parsing import build_disk_document, parse_catalog_payload
from .store import CatalogStore

__all__ = [
    'Catalog', 'CatalogCache', 'CatalogEntry', 'CatalogSource',
    'build_disk_document', 'parse_catalog_payload', 'CatalogStore',
]
