"""
Non-game filtering for upstream records.

Two tiers:
  1. The upstream `type` field, when present and meaningful, is authoritative.
  2. Otherwise the name is checked against keyword heuristics.

Names carrying "edition" (Deluxe Edition, GOTY Edition, ...) are real games
sold in another package, so the DLC keyword tier does not apply to them.
The keyword lists are a tuning surface.
"""

import re
from typing import Any, Dict, Optional

from .models import RecordKind

# Upstream `type` values -> kind. "app" (store search) carries no information.
TYPE_MAP = {
    'game': RecordKind.GAME,
    'dlc': RecordKind.DLC,
    'music': RecordKind.DLC,
    'demo': RecordKind.DEMO,
    'video': RecordKind.VIDEO,
    'movie': RecordKind.VIDEO,
    'series': RecordKind.VIDEO,
    'episode': RecordKind.VIDEO,
    'hardware': RecordKind.HARDWARE,
}
UNINFORMATIVE_TYPES = {'', 'app'}

DEMO_PATTERN = re.compile(r'\b(demo|playtest)\b', re.IGNORECASE)
VIDEO_PATTERN = re.compile(r'\btrailer\b', re.IGNORECASE)
DLC_PATTERN = re.compile(
    r'\b(dlc|soundtrack pack|soundtrack|asset pack|season pass|expansion pass)\b',
    re.IGNORECASE
)
EDITION_PATTERN = re.compile(r'\bedition\b', re.IGNORECASE)


def classify_name(name: str) -> RecordKind:
    """Heuristic classification from the display name alone."""
    if DEMO_PATTERN.search(name):
        return RecordKind.DEMO
    if VIDEO_PATTERN.search(name):
        return RecordKind.VIDEO
    if DLC_PATTERN.search(name) and not EDITION_PATTERN.search(name):
        return RecordKind.DLC
    return RecordKind.GAME


def classify(record: Dict[str, Any], name: Optional[str] = None) -> RecordKind:
    """
    Classify an upstream record.

    Args:
        record: Raw upstream dict (appdetails data or store search item)
        name: Override for the display name (defaults to record['name'])

    Returns:
        RecordKind; only RecordKind.GAME should be shown as a search result
    """
    raw_type = str(record.get('type') or '').strip().lower()

    if raw_type not in UNINFORMATIVE_TYPES:
        return TYPE_MAP.get(raw_type, RecordKind.UNKNOWN)

    display_name = name if name is not None else record.get('name')
    if not isinstance(display_name, str) or not display_name.strip():
        return RecordKind.UNKNOWN
    return classify_name(display_name)


def is_game(record: Dict[str, Any], name: Optional[str] = None) -> bool:
    return classify(record, name) == RecordKind.GAME
