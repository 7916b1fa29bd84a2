import pytest

from gamevault_app.metadata.models import DetailOrigin, GameDetail
from gamevault_app.search.deduplicator import SearchDeduplicator


def _games(*names):
    return [GameDetail(id=index + 1, name=name, origin=DetailOrigin.APP_DETAILS) for index, name in enumerate(names)]


def test_edition_collapses_into_first_seen():
    deduplicator = SearchDeduplicator()

    kept = deduplicator.deduplicate(_games("Celeste", "Celeste: Farewell Edition"))

    assert [game.name for game in kept] == ["Celeste"]


def test_first_occurrence_wins_even_when_it_is_the_edition():
    kept = SearchDeduplicator().deduplicate(_games("Celeste: Farewell Edition", "Celeste"))

    assert [game.name for game in kept] == ["Celeste: Farewell Edition"]


@pytest.mark.parametrize("first,second", [
    ("The Legend of Zelda: Breath of the Wild", "Legend of Zelda Breath of the Wild"),
    ("Super Mario Odyssey!", "Super Mario Odyssey"),
    ("The Witcher 3: Wild Hunt", "The Witcher 3: Wild Hunt - Game of the Year Edition"),
    ("Skyrim", "Skyrim Remastered"),
])
def test_near_duplicates_are_removed(first, second):
    kept = SearchDeduplicator().deduplicate(_games(first, second))

    assert [game.name for game in kept] == [first]


def test_distinct_games_survive():
    names = ("Portal", "Hades", "Hollow Knight", "Stardew Valley")

    kept = SearchDeduplicator().deduplicate(_games(*names))

    assert [game.name for game in kept] == list(names)


def test_normalize_title():
    deduplicator = SearchDeduplicator()

    assert deduplicator.normalize_title("The Witcher 3: Wild Hunt - GOTY Edition") == "witcher 3 wild hunt"
    assert deduplicator.normalize_title("  A Hat in Time ") == "hat in time"
    assert deduplicator.normalize_title("!!!") == "!!!"


def test_apostrophes_do_not_split_words():
    deduplicator = SearchDeduplicator()

    assert deduplicator.normalize_title("Death Stranding Director's Cut") == "death stranding"
    assert deduplicator.normalize_title("Baldur's Gate 3") == "baldurs gate 3"
    assert deduplicator.normalize_title("Assassin\u2019s Creed") == "assassins creed"


def test_similarity_is_normalized_levenshtein():
    deduplicator = SearchDeduplicator()

    assert deduplicator.calculate_similarity("Portal", "Portal") == 1.0
    assert deduplicator.calculate_similarity("abcd", "abcx") == pytest.approx(0.75)


def test_threshold_is_configurable():
    strict = SearchDeduplicator(similarity_threshold=0.99)

    kept = strict.deduplicate(_games("Hades", "Hades II"))

    assert len(kept) == 2
