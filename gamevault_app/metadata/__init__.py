"""
Game detail layer: canonical GameDetail record, non-game classifier,
per-shape normalizers, detail cache and the batched DetailEnricher.
"""

from .cache import DetailCache
from .classifier import classify, classify_name, is_game
from .enricher import DetailEnricher
from .models import DetailOrigin, GameDetail, GameImages, RecordKind, ReleaseInfo
from .normalizers import (
    normalize_app_details,
    normalize_curated,
    normalize_store_item,
    parse_release_date,
)

__all__ = [
    'DetailCache', 'classify', 'classify_name', 'is_game', 'DetailEnricher',
    'DetailOrigin', 'GameDetail', 'GameImages', 'RecordKind', 'ReleaseInfo',
    'normalize_app_details', 'normalize_curated', 'normalize_store_item', 'parse_release_date',
]
