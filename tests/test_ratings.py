import asyncio

import pytest

from conftest import ALICE, BOB, CAROL
from core.config import settings
from core.errors import AlreadyRated, InvalidScore, NoEligibleMatch, StorageUnavailable, UserNotFound
from models.match import MatchStatus
from services import matching, ratings


def _run(factory, op, *args):
    async def go():
        async with factory() as db:
            return await op(db, *args)

    return asyncio.run(go())


def _make_mutual(factory, first, second):
    _run(factory, matching.like, first, second, (), ())
    _run(factory, matching.like, second, first, (), ())


def test_rating_marks_flag_and_ends_match(db_factory):
    _make_mutual(db_factory, ALICE, BOB)

    outcome = _run(db_factory, ratings.record_rating, ALICE, BOB, 7)

    match = _run(db_factory, matching.find_match, ALICE, BOB)
    assert match.user_a_rated is True
    assert match.user_b_rated is False
    assert match.status is MatchStatus.ENDED
    assert outcome.average_rating == 7.0
    assert outcome.total_ratings == 1
    assert outcome.rating.score == 7


def test_rating_twice_fails(db_factory):
    _make_mutual(db_factory, ALICE, BOB)
    _run(db_factory, ratings.record_rating, ALICE, BOB, 7)

    with pytest.raises(AlreadyRated):
        _run(db_factory, ratings.record_rating, ALICE, BOB, 9)


def test_other_side_can_rate_ended_match(db_factory):
    _make_mutual(db_factory, ALICE, BOB)
    _run(db_factory, ratings.record_rating, ALICE, BOB, 7)

    _run(db_factory, ratings.record_rating, BOB, ALICE, 4)

    match = _run(db_factory, matching.find_match, ALICE, BOB)
    assert match.user_a_rated is True
    assert match.user_b_rated is True
    assert match.status is MatchStatus.ENDED


def test_rating_without_mutual_match_fails(db_factory):
    with pytest.raises(NoEligibleMatch):
        _run(db_factory, ratings.record_rating, ALICE, BOB, 5)

    _run(db_factory, matching.like, ALICE, BOB, (), ())
    with pytest.raises(NoEligibleMatch):
        _run(db_factory, ratings.record_rating, ALICE, BOB, 5)


@pytest.mark.parametrize("score", [0, 11, -3, 7.5, "7", True])
def test_invalid_scores_are_rejected(db_factory, score):
    _make_mutual(db_factory, ALICE, BOB)

    with pytest.raises(InvalidScore):
        _run(db_factory, ratings.record_rating, ALICE, BOB, score)


def test_average_rating_across_matches(db_factory):
    _make_mutual(db_factory, ALICE, BOB)
    _make_mutual(db_factory, CAROL, BOB)

    _run(db_factory, ratings.record_rating, ALICE, BOB, 7)
    _run(db_factory, ratings.record_rating, CAROL, BOB, 8)

    summary = _run(db_factory, ratings.rating_summary, BOB)
    assert summary.average_rating == 7.5
    assert summary.total_ratings == 2

    received = _run(db_factory, ratings.list_ratings, BOB)
    assert sorted(r.rater_name for r in received) == ["Alice", "Carol"]


def test_match_waits_for_both_ratings_when_configured(db_factory, monkeypatch):
    monkeypatch.setattr(settings, "END_MATCH_ON_FIRST_RATING", False)
    _make_mutual(db_factory, ALICE, BOB)

    _run(db_factory, ratings.record_rating, ALICE, BOB, 6)
    assert _run(db_factory, matching.find_match, ALICE, BOB).status is MatchStatus.MUTUAL

    _run(db_factory, ratings.record_rating, BOB, ALICE, 9)
    assert _run(db_factory, matching.find_match, ALICE, BOB).status is MatchStatus.ENDED


def test_can_rate_reasons(db_factory):
    assert _run(db_factory, ratings.can_rate, ALICE, BOB) == (False, "No match found")

    _make_mutual(db_factory, ALICE, BOB)
    assert _run(db_factory, ratings.can_rate, ALICE, BOB) == (True, "Can rate")

    _run(db_factory, ratings.record_rating, ALICE, BOB, 8)
    assert _run(db_factory, ratings.can_rate, ALICE, BOB) == (False, "Already rated")
    assert _run(db_factory, ratings.can_rate, BOB, ALICE) == (True, "Can rate")


def test_summary_for_unknown_user(db_factory):
    with pytest.raises(UserNotFound):
        _run(db_factory, ratings.rating_summary, 999)


def test_concurrent_ratings_from_one_side_store_one_rating(db_factory):
    _make_mutual(db_factory, ALICE, BOB)

    async def rate(score):
        async with db_factory() as db:
            return await ratings.record_rating(db, ALICE, BOB, score)

    async def scenario():
        return await asyncio.gather(rate(6), rate(9), return_exceptions=True)

    results = asyncio.run(scenario())

    stored = [r for r in results if isinstance(r, ratings.RatingOutcome)]
    failed = [r for r in results if isinstance(r, AlreadyRated)]
    assert len(stored) == 1
    assert len(failed) == 1

    received = _run(db_factory, ratings.list_ratings, BOB)
    assert [r.score for r in received] == [stored[0].rating.score]
    summary = _run(db_factory, ratings.rating_summary, BOB)
    assert summary.total_ratings == 1


def test_rating_gives_up_after_write_retries(db_factory, monkeypatch):
    _make_mutual(db_factory, ALICE, BOB)

    async def always_conflict(db, match, **values):
        return False

    monkeypatch.setattr(settings, "MATCH_WRITE_RETRIES", 2)
    monkeypatch.setattr(ratings, "compare_and_swap", always_conflict)

    with pytest.raises(StorageUnavailable):
        _run(db_factory, ratings.record_rating, ALICE, BOB, 7)

    assert _run(db_factory, ratings.can_rate, ALICE, BOB) == (True, "Can rate")
