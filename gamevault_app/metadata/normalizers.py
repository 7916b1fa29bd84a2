"""
================================================================================
GameVault v1.0 - Upstream Normalizers
================================================================================
One function per upstream shape, each mapping into the canonical GameDetail:

  normalize_app_details()  - Steam appdetails `data` object (full record)
  normalize_store_item()   - Steam storesearch item (light record)
  normalize_curated()      - curated fallback entry

Any record missing its id or name raises MalformedResponse instead of
producing a partial GameDetail.
================================================================================
"""

import html
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from sources.exceptions import MalformedResponse

from .models import (
    DetailOrigin,
    GameDetail,
    GameImages,
    ReleaseInfo,
    names_of,
    rating_from_metacritic,
)

TAG_RE = re.compile(r"<[^>]+>")
BREAK_RE = re.compile(r"<\s*(br|/p|/li|/h\d)\s*/?>", re.IGNORECASE)
SPACES_RE = re.compile(r"[ \t\r\f\v]+")

PLATFORM_LABELS = (
    ('windows', 'Windows'),
    ('mac', 'macOS'),
    ('linux', 'Linux'),
)

# Free-text formats seen in Steam release dates, tried after commas are removed
RELEASE_DATE_FORMATS = (
    "%d %b %Y",   # 24 Feb 2022
    "%b %d %Y",   # Feb 24 2022
    "%d %B %Y",   # 24 February 2022
    "%B %d %Y",   # February 24 2022
    "%Y-%m-%d",
    "%b %Y",      # Feb 2022
    "%B %Y",
    "%Y",
)


# =============================================================================
# FIELD HELPERS
# =============================================================================

def parse_release_date(text: Optional[str]) -> Optional[float]:
    """
    Parse a free-text release date into a UTC Unix timestamp.

    First attempt: ISO 8601 (honours an explicit offset).
    Second attempt: known free-text formats, interpreted as UTC.
    Returns None for "Coming soon", "Q1 2025" and anything else unparseable.
    """
    if not text or not isinstance(text, str):
        return None
    text = text.strip()

    try:
        parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.timestamp()
    except ValueError:
        pass

    cleaned = SPACES_RE.sub(' ', text.replace(',', ' ')).strip()
    for fmt in RELEASE_DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).replace(tzinfo=timezone.utc).timestamp()
        except ValueError:
            continue
    return None


def strip_html(text: Any) -> str:
    if not text or not isinstance(text, str):
        return ""
    text = BREAK_RE.sub("\n", text)
    text = html.unescape(TAG_RE.sub("", text))
    lines = [SPACES_RE.sub(" ", line).strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


def platforms_of(flags: Any) -> Tuple[str, ...]:
    if not isinstance(flags, dict):
        return ()
    return tuple(label for key, label in PLATFORM_LABELS if flags.get(key))


def _score(value: Any) -> Optional[int]:
    """Coerce a 0-100 score given as int or string; blank/invalid -> None."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        score = int(str(value).strip())
    except ValueError:
        return None
    return score if 0 <= score <= 100 else None


def _count(value: Any) -> int:
    """Coerce a non-negative count; anything unusable counts as zero."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        return max(0, int(str(value).strip()))
    except ValueError:
        return 0


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _require_identity(app_id: Any, name: Any, shape: str) -> Tuple[int, str]:
    try:
        app_id = int(app_id)
    except (TypeError, ValueError):
        raise MalformedResponse(f"{shape}: invalid id {app_id!r}")
    if not isinstance(name, str) or not name.strip():
        raise MalformedResponse(f"{shape} {app_id}: missing name")
    return app_id, name.strip()


# =============================================================================
# SHAPES
# =============================================================================

def normalize_app_details(app_id: int, data: Dict[str, Any]) -> GameDetail:
    """
    Normalize a Steam appdetails `data` object.

    Optional fields of the wrong type are treated as absent. Anything else
    unusable in the payload surfaces as MalformedResponse.
    """
    try:
        return _app_details(app_id, data)
    except (TypeError, ValueError, AttributeError) as e:
        raise MalformedResponse(f"appdetails {app_id}: unusable payload ({e})")


def _app_details(app_id: int, data: Dict[str, Any]) -> GameDetail:
    app_id, name = _require_identity(data.get('steam_appid') or app_id, data.get('name'), 'appdetails')

    release_raw = data.get('release_date')
    if not isinstance(release_raw, dict):
        release_raw = {}
    release_text = (_text(release_raw.get('date')) or '').strip()
    release = ReleaseInfo(
        display_text=release_text or 'Unknown',
        timestamp=parse_release_date(release_text),
        coming_soon=bool(release_raw.get('coming_soon'))
    )

    metacritic = data.get('metacritic')
    metacritic_score = _score(metacritic.get('score')) if isinstance(metacritic, dict) else None

    recommendations = data.get('recommendations')
    ratings_count = _count(recommendations.get('total')) if isinstance(recommendations, dict) else 0

    shots = data.get('screenshots')
    screenshots = tuple(
        shot['path_full'] for shot in (shots if isinstance(shots, list) else [])
        if isinstance(shot, dict) and _text(shot.get('path_full'))
    )

    return GameDetail(
        id=app_id,
        name=name,
        origin=DetailOrigin.APP_DETAILS,
        short_description=strip_html(data.get('short_description')),
        long_description=strip_html(_text(data.get('detailed_description')) or data.get('about_the_game')),
        release=release,
        rating=rating_from_metacritic(metacritic_score),
        metacritic_score=metacritic_score,
        ratings_count=ratings_count,
        platforms=platforms_of(data.get('platforms')),
        genres=names_of(_list(data.get('genres'))),
        developers=names_of(_list(data.get('developers'))),
        publishers=names_of(_list(data.get('publishers'))),
        images=GameImages(
            header=_text(data.get('header_image')),
            background=_text(data.get('background_raw')) or _text(data.get('background'))
        ),
        website=_text(data.get('website')),
        screenshots=screenshots
    )


def normalize_store_item(item: Dict[str, Any]) -> GameDetail:
    """Normalize a Steam storesearch item (no description or release data)."""
    app_id, name = _require_identity(item.get('id'), item.get('name'), 'storesearch')
    metacritic_score = _score(item.get('metascore'))

    return GameDetail(
        id=app_id,
        name=name,
        origin=DetailOrigin.STORE_SEARCH,
        rating=rating_from_metacritic(metacritic_score),
        metacritic_score=metacritic_score,
        platforms=platforms_of(item.get('platforms')),
        images=GameImages(header=item.get('tiny_image') or None)
    )


def normalize_curated(record: Dict[str, Any]) -> GameDetail:
    """Normalize a curated fallback entry."""
    app_id, name = _require_identity(record.get('id'), record.get('name'), 'curated')
    metacritic_score = _score(record.get('metacritic'))
    released = record.get('released') or 'Unknown'

    return GameDetail(
        id=app_id,
        name=name,
        origin=DetailOrigin.CURATED,
        short_description=record.get('description', ''),
        long_description=record.get('description', ''),
        release=ReleaseInfo(display_text=released, timestamp=parse_release_date(released)),
        rating=rating_from_metacritic(metacritic_score),
        metacritic_score=metacritic_score,
        ratings_count=int(record.get('ratings_count', 0)),
        platforms=tuple(record.get('platforms', ())),
        genres=tuple(record.get('genres', ())),
        developers=tuple(record.get('developers', ())),
        publishers=tuple(record.get('publishers', ())),
        images=GameImages(header=record.get('image')),
        website=record.get('website')
    )
