from datetime import datetime, timezone

import pytest

from gamevault_app.metadata.models import DetailOrigin
from gamevault_app.metadata.normalizers import (
    normalize_app_details,
    normalize_curated,
    normalize_store_item,
    parse_release_date,
)
from sources.exceptions import MalformedResponse

from conftest import detail_data


def _ts(*args):
    return datetime(*args, tzinfo=timezone.utc).timestamp()


@pytest.mark.parametrize("text,expected", [
    ("24 Feb, 2022", _ts(2022, 2, 24)),
    ("Feb 24, 2022", _ts(2022, 2, 24)),
    ("2022-02-24", _ts(2022, 2, 24)),
    ("2022-02-24T10:00:00Z", _ts(2022, 2, 24, 10)),
    ("Mar 2025", _ts(2025, 3, 1)),
    ("Coming soon", None),
    ("Q3 2025", None),
    ("", None),
])
def test_parse_release_date(text, expected):
    assert parse_release_date(text) == expected


def test_app_details_are_fully_normalized():
    data = detail_data(
        1245620, "ELDEN RING", metacritic=94,
        recommendations={"total": 700000},
        screenshots=[{"id": 0, "path_full": "https://cdn.example.com/s0.jpg"}],
        release_date={"coming_soon": True, "date": "25 Feb, 2022"},
    )

    detail = normalize_app_details(1245620, data)

    assert detail.origin == DetailOrigin.APP_DETAILS
    assert detail.rating == 4.7
    assert detail.metacritic_score == 94
    assert detail.ratings_count == 700000
    assert detail.release.timestamp == _ts(2022, 2, 25)
    assert detail.release.coming_soon is True
    assert detail.platforms == ("Windows", "Linux")
    assert detail.genres == ("Action",)
    assert detail.long_description == "All about ELDEN RING"
    assert detail.screenshots == ("https://cdn.example.com/s0.jpg",)
    assert detail.has_image


def test_app_details_without_optional_fields():
    detail = normalize_app_details(7, {"name": "Bare Game"})

    assert detail.rating is None
    assert detail.metacritic_score is None
    assert detail.release.display_text == "Unknown"
    assert detail.release.timestamp is None
    assert detail.platforms == ()
    assert not detail.has_image


def test_missing_name_is_malformed():
    with pytest.raises(MalformedResponse):
        normalize_app_details(7, {"type": "game"})


def test_store_item_shape():
    detail = normalize_store_item({
        "type": "app", "id": 620, "name": "Portal 2",
        "tiny_image": "https://cdn.example.com/620.jpg", "metascore": "95",
        "platforms": {"windows": True, "mac": True, "linux": True},
    })

    assert detail.origin == DetailOrigin.STORE_SEARCH
    assert detail.metacritic_score == 95
    assert detail.rating == 4.8
    assert detail.images.header == "https://cdn.example.com/620.jpg"


def test_curated_shape_serializes_to_route_dict():
    detail = normalize_curated({
        "id": 504230, "name": "Celeste", "description": "Climb.", "released": "25 Jan, 2018",
        "metacritic": 88, "platforms": ["Windows"], "image": "https://cdn.example.com/504230.jpg",
    })

    payload = detail.to_dict()

    assert payload["origin"] == "curated"
    assert payload["released"] == "25 Jan, 2018"
    assert payload["releaseTimestamp"] == _ts(2018, 1, 25)
    assert payload["headerImage"] == "https://cdn.example.com/504230.jpg"
    assert payload["currentPlayers"] is None
