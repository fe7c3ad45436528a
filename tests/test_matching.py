import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from conftest import ALICE, BOB, CAROL, CHESS, HIKING, TENNIS
from core.config import settings
from core.errors import NoEligibleMatch, SelfMatch, StorageUnavailable
from models.match import Match, MatchStatus
from services import matching
from services.matching import LikeOutcome


def _like(factory, actor, target, actor_hobbies=(), target_hobbies=(), on_mutual=None):
    async def go():
        async with factory() as db:
            result = await matching.like(db, actor, target, actor_hobbies, target_hobbies, on_mutual)
            return result.outcome

    return asyncio.run(go())


def _reject(factory, actor, target):
    async def go():
        async with factory() as db:
            await matching.reject(db, actor, target)

    asyncio.run(go())


def _load(factory, first, second):
    async def go():
        async with factory() as db:
            return await matching.find_match(db, first, second)

    return asyncio.run(go())


def _count_matches(factory):
    async def go():
        async with factory() as db:
            return (await db.execute(select(func.count(Match.id)))).scalar_one()

    return asyncio.run(go())


def test_first_like_creates_pending_match(db_factory):
    outcome = _like(db_factory, ALICE, BOB, {TENNIS, HIKING}, {HIKING, CHESS})

    match = _load(db_factory, ALICE, BOB)
    assert outcome is LikeOutcome.LIKED
    assert match.status is MatchStatus.PENDING
    assert match.liked_by == {ALICE}
    assert match.shared_hobbies == [HIKING]
    assert match.matched_at is None
    assert (match.user_a_id, match.user_b_id) == (ALICE, BOB)


def test_reverse_like_forms_mutual_match(db_factory):
    notified = []
    _like(db_factory, ALICE, BOB, {TENNIS, HIKING}, {HIKING, CHESS})
    first = _load(db_factory, ALICE, BOB)

    outcome = _like(
        db_factory, BOB, ALICE, {HIKING, CHESS}, {TENNIS, HIKING},
        on_mutual=lambda a, b: notified.append((a, b)),
    )

    match = _load(db_factory, BOB, ALICE)
    assert outcome is LikeOutcome.MUTUAL
    assert match.id == first.id
    assert match.status is MatchStatus.MUTUAL
    assert match.liked_by == {ALICE, BOB}
    assert match.matched_at is not None
    assert notified == [(ALICE, BOB)]
    assert _count_matches(db_factory) == 1


def test_pair_is_stored_in_canonical_order(db_factory):
    _like(db_factory, CAROL, BOB, {CHESS}, {HIKING, CHESS})

    match = _load(db_factory, BOB, CAROL)
    assert (match.user_a_id, match.user_b_id) == (BOB, CAROL)
    assert match.user_b_liked is True
    assert match.user_a_liked is False
    assert match.shared_hobbies == [CHESS]


def test_repeated_like_is_idempotent(db_factory):
    _like(db_factory, ALICE, BOB)
    version = _load(db_factory, ALICE, BOB).version

    outcome = _like(db_factory, ALICE, BOB)

    match = _load(db_factory, ALICE, BOB)
    assert outcome is LikeOutcome.LIKED
    assert match.liked_by == {ALICE}
    assert match.status is MatchStatus.PENDING
    assert match.version == version
    assert _count_matches(db_factory) == 1


def test_like_on_mutual_match_is_noop(db_factory):
    notified = []
    _like(db_factory, ALICE, BOB)
    _like(db_factory, BOB, ALICE)
    before = _load(db_factory, ALICE, BOB)

    outcome = _like(db_factory, ALICE, BOB, on_mutual=lambda a, b: notified.append((a, b)))

    after = _load(db_factory, ALICE, BOB)
    assert outcome is LikeOutcome.ALREADY_MATCHED
    assert after.version == before.version
    assert after.status is MatchStatus.MUTUAL
    assert notified == []


def test_like_yourself_fails(db_factory):
    with pytest.raises(SelfMatch):
        _like(db_factory, ALICE, ALICE)


def test_reject_keeps_likes_and_overrides_status(db_factory):
    _like(db_factory, ALICE, BOB)

    _reject(db_factory, ALICE, BOB)

    match = _load(db_factory, ALICE, BOB)
    assert match.status is MatchStatus.REJECTED
    assert match.liked_by == {ALICE}


def test_reject_without_record_creates_rejected_match(db_factory):
    _reject(db_factory, BOB, ALICE)

    match = _load(db_factory, ALICE, BOB)
    assert match.status is MatchStatus.REJECTED
    assert match.liked_by == set()
    assert match.shared_hobbies == []
    assert (match.user_a_id, match.user_b_id) == (ALICE, BOB)


def test_reject_overrides_mutual_match(db_factory):
    _like(db_factory, ALICE, BOB)
    _like(db_factory, BOB, ALICE)

    _reject(db_factory, BOB, ALICE)

    match = _load(db_factory, ALICE, BOB)
    assert match.status is MatchStatus.REJECTED
    assert _count_matches(db_factory) == 1


def test_like_after_reject_stays_rejected_until_other_side_liked(db_factory):
    _reject(db_factory, BOB, ALICE)

    outcome = _like(db_factory, ALICE, BOB)

    match = _load(db_factory, ALICE, BOB)
    assert outcome is LikeOutcome.LIKED
    assert match.status is MatchStatus.REJECTED
    assert match.liked_by == {ALICE}

    outcome = _like(db_factory, BOB, ALICE)
    assert outcome is LikeOutcome.MUTUAL
    assert _load(db_factory, ALICE, BOB).status is MatchStatus.MUTUAL


def test_end_match_moves_mutual_to_ended(db_factory):
    _like(db_factory, ALICE, BOB)
    _like(db_factory, BOB, ALICE)

    async def go():
        async with db_factory() as db:
            return (await matching.end_match(db, ALICE, BOB)).status

    assert asyncio.run(go()) is MatchStatus.ENDED
    assert _like(db_factory, BOB, ALICE) is LikeOutcome.ALREADY_MATCHED


def test_end_match_requires_mutual(db_factory):
    _like(db_factory, ALICE, BOB)

    async def go():
        async with db_factory() as db:
            await matching.end_match(db, ALICE, BOB)

    with pytest.raises(NoEligibleMatch):
        asyncio.run(go())


def test_shared_hobbies_is_exact_intersection():
    assert matching.shared_hobbies_of([3, 1, 2, 2], {2, 3, 4}) == [2, 3]
    assert matching.shared_hobbies_of([], [1]) == []


def test_like_gives_up_after_write_retries(db_factory, monkeypatch):
    _like(db_factory, ALICE, BOB)
    attempts = []

    async def always_conflict(db, match, **values):
        attempts.append(match.id)
        return False

    monkeypatch.setattr(settings, "MATCH_WRITE_RETRIES", 3)
    monkeypatch.setattr(matching, "compare_and_swap", always_conflict)

    with pytest.raises(StorageUnavailable):
        _like(db_factory, BOB, ALICE)

    assert len(attempts) == 3
    assert _load(db_factory, ALICE, BOB).status is MatchStatus.PENDING


def test_database_failure_becomes_storage_unavailable(db_factory, monkeypatch):
    async def broken_find_match(db, first_id, second_id):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(matching, "find_match", broken_find_match)

    with pytest.raises(StorageUnavailable) as exc_info:
        _like(db_factory, ALICE, BOB)

    assert exc_info.value.status_code == 503
    assert isinstance(exc_info.value.__cause__, OperationalError)
