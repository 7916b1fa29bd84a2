"""
Catalog payload parsing.

Mirrors publish the Steam app list in several shapes. Every shape is reduced
to the same validated Catalog:

  1. {"applist": {"apps": [{"appid": 10, "name": "..."}]}}   Steam Web API
  2. {"apps": [...]}                                         our disk format
  3. [{"appid"|"id"|"appId"|"AppID": .., "name"|"Name"|...: ..}]
  4. {"10": "Counter-Strike"} or {"10": {"name": "..."}}     keyed by app id

Entries without an id or a name, with a non-numeric id, or with a blank name
are dropped. Duplicate ids keep their first occurrence.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sources.exceptions import MalformedResponse

from .models import Catalog, CatalogEntry, CatalogSource

logger = logging.getLogger(__name__)

ID_KEYS = ('appid', 'id', 'appId', 'AppID')
NAME_KEYS = ('name', 'Name', 'gameName', 'GameName')


def _first_present(item: Dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None and value != '':
            return value
    return None


def _coerce_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        app_id = int(value.strip())
        return app_id if app_id > 0 else None
    return None


def _raw_items(payload: Any) -> List[Dict[str, Any]]:
    """Flatten any accepted payload shape into a list of {id-ish, name-ish} dicts."""
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]

    if not isinstance(payload, dict):
        raise MalformedResponse(f"catalog payload has unsupported type {type(payload).__name__}")

    applist = payload.get('applist')
    if isinstance(applist, dict) and isinstance(applist.get('apps'), list):
        return [item for item in applist['apps'] if isinstance(item, dict)]

    if isinstance(payload.get('apps'), list):
        return [item for item in payload['apps'] if isinstance(item, dict)]

    # Object keyed by app id
    items = []
    for key, value in payload.items():
        if isinstance(value, str):
            items.append({'appid': key, 'name': value})
        elif isinstance(value, dict):
            items.append({'appid': key, 'name': _first_present(value, NAME_KEYS)})
    if not items:
        raise MalformedResponse("catalog payload has no recognizable entries")
    return items


def parse_catalog_payload(payload: Any) -> Catalog:
    """
    Parse and validate a raw catalog payload.

    Raises:
        MalformedResponse: payload is not one of the accepted shapes
    """
    entries: List[CatalogEntry] = []
    seen = set()
    dropped = 0

    for item in _raw_items(payload):
        app_id = _coerce_id(_first_present(item, ID_KEYS))
        name = _first_present(item, NAME_KEYS)
        if app_id is None or not isinstance(name, str) or not name.strip():
            dropped += 1
            continue
        if app_id in seen:
            continue
        seen.add(app_id)
        entries.append(CatalogEntry(id=app_id, name=name.strip()))

    if dropped:
        logger.debug(f"Dropped {dropped} invalid catalog entries")

    return tuple(entries)


def build_disk_document(entries: Catalog, source: CatalogSource, downloaded_at: datetime) -> Dict[str, Any]:
    """Build the on-disk cache document with provenance metadata."""
    return {
        'source': source.value,
        'downloadedAt': downloaded_at.isoformat(),
        'appCount': len(entries),
        'apps': [{'appid': entry.id, 'name': entry.name} for entry in entries]
    }


def parse_downloaded_at(value: Any) -> Optional[datetime]:
    """Parse the ISO8601 `downloadedAt` stamp (a trailing 'Z' is accepted)."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
