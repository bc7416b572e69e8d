from __future__ import annotations

import random

import pytest

from brainbolt.game.cache import CacheLayer, CacheNamespace
from brainbolt.game.questions.selection import pick_from_pool, select_next_question
from brainbolt.game.sessions.errors import NoQuestionsAvailableError
from tests.game.quiz_store_fixtures import InMemoryQuizStore, make_question


def test_pick_from_pool_excludes_last_question_when_possible() -> None:
    pool = (make_question("q1"), make_question("q2"))
    rng = random.Random(3)

    picks = {pick_from_pool(pool, exclude_question_id="q1", rng=rng).question_id for _ in range(20)}

    assert picks == {"q2"}


def test_pick_from_pool_keeps_single_candidate_even_if_excluded() -> None:
    pool = (make_question("q1"),)
    picked = pick_from_pool(pool, exclude_question_id="q1", rng=random.Random(1))

    assert picked is not None
    assert picked.question_id == "q1"
    assert pick_from_pool((), exclude_question_id=None, rng=random.Random(1)) is None


@pytest.mark.asyncio
async def test_select_next_question_uses_rounded_difficulty_pool() -> None:
    store = InMemoryQuizStore(
        [
            make_question("easy", difficulty=2),
            make_question("medium", difficulty=3),
        ]
    )
    caches = CacheLayer()

    question = await select_next_question(
        store,
        caches,
        current_difficulty=2.5,
        last_question_id=None,
        rng=random.Random(1),
    )

    assert question.question_id == "medium"
    assert caches.get(CacheNamespace.QUESTION_POOL, 3) == (store.questions["medium"],)


@pytest.mark.asyncio
async def test_select_next_question_reuses_cached_pool() -> None:
    store = InMemoryQuizStore([make_question("q1", difficulty=1), make_question("q2", difficulty=1)])
    caches = CacheLayer()

    for _ in range(3):
        await select_next_question(
            store,
            caches,
            current_difficulty=1.0,
            last_question_id=None,
            rng=random.Random(2),
        )

    assert store.calls.count("get_questions_by_difficulty") == 1


@pytest.mark.asyncio
async def test_select_next_question_falls_back_to_neighbour_difficulty() -> None:
    store = InMemoryQuizStore([make_question("q4", difficulty=4)])
    caches = CacheLayer()

    question = await select_next_question(
        store,
        caches,
        current_difficulty=5.0,
        last_question_id=None,
        rng=random.Random(2),
    )

    assert question.question_id == "q4"
    # Empty pools are not cached, so new questions show up immediately.
    assert caches.get(CacheNamespace.QUESTION_POOL, 5) is None
    assert store.calls.count("get_random_question") == 1


@pytest.mark.asyncio
async def test_select_next_question_raises_when_bank_is_empty() -> None:
    with pytest.raises(NoQuestionsAvailableError):
        await select_next_question(
            InMemoryQuizStore(),
            CacheLayer(),
            current_difficulty=1.0,
            last_question_id=None,
            rng=random.Random(2),
        )
