"""Tests for recommendation ranking and the newest-first fallback."""

import pytest

from src.recommender.config import EngineConfig
from src.recommender.exceptions import UserNotFoundError, ValidationError
from src.recommender.models import (
    Category,
    CategoryPreferences,
    Gender,
    HistoryPartition,
    User,
)
from src.recommender.pipeline import (
    METHOD_NEWEST_FALLBACK,
    METHOD_SIMILARITY,
    RecommendationPipeline,
    gender_filter,
)


def _save_user(store, user_id="u1", gender=Gender.UNISEX, history=None, **preferences):
    user = User(
        id=user_id,
        gender=gender,
        preferences=CategoryPreferences(**preferences),
        history=history or HistoryPartition(),
    )
    store.save_user(user)
    return user


@pytest.fixture
def pipeline(store):
    return RecommendationPipeline(store)


def test_gender_filter():
    assert gender_filter(User(id="a", gender=Gender.UNISEX)) is None
    assert gender_filter(User(id="b", gender=Gender.FEMALE)) == {Gender.FEMALE, Gender.UNISEX}
    assert gender_filter(User(id="c", gender=Gender.MALE)) == {Gender.MALE, Gender.UNISEX}


def test_new_user_gets_newest_gender_appropriate_products(store, pipeline, make_product):
    store.save_product(make_product("f1", [1.0, 0.0], gender=Gender.FEMALE, age=1))
    store.save_product(make_product("f2", [1.0, 0.0], gender=Gender.FEMALE, age=2))
    store.save_product(make_product("f3", [1.0, 0.0], gender=Gender.FEMALE, age=3))
    store.save_product(make_product("m1", [1.0, 0.0], gender=Gender.MALE, age=4))
    store.save_product(make_product("x1", [1.0, 0.0], gender=Gender.UNISEX, age=5))
    _save_user(store, gender=Gender.FEMALE)

    products, scores = pipeline.recommend_with_scores("u1", "clothing", 10)

    assert [p.id for p in products] == ["x1", "f3", "f2", "f1"]
    assert scores == {"method": METHOD_NEWEST_FALLBACK}


def test_ranks_by_similarity_to_preference(store, pipeline, make_product):
    store.save_product(make_product("away", [-1.0, 0.0]))
    store.save_product(make_product("toward", [1.0, 0.0]))
    _save_user(store, clothing=[1.0, 0.0])

    products = pipeline.recommend("u1", Category.CLOTHING, 1)

    assert [p.id for p in products] == ["toward"]


def test_ranking_orders_all_candidates(store, pipeline, make_product):
    accessories = Category.ACCESSORIES
    store.save_product(make_product("low", [-1.0, 0.0], category=accessories))
    store.save_product(make_product("mid", [0.0, 1.0], category=accessories))
    store.save_product(make_product("high", [1.0, 0.1], category=accessories))
    _save_user(store, accessories=[1.0, 0.0])

    products, scores = pipeline.recommend_with_scores("u1", "accessories", 10)

    assert [p.id for p in products] == ["high", "mid", "low"]
    assert scores["method"] == METHOD_SIMILARITY
    values = [scores["scores"][p.id] for p in products]
    assert values == sorted(values, reverse=True)


def test_interacted_products_are_excluded(store, pipeline, make_product):
    for pid in ("p1", "p2", "p3"):
        store.save_product(make_product(pid, [1.0, 0.0]))
    history = HistoryPartition(liked=["p1"], disliked=["p3"])
    _save_user(store, history=history, clothing=[1.0, 0.0])

    products = pipeline.recommend("u1", "clothing", 10)

    assert [p.id for p in products] == ["p2"]


def test_fallback_also_excludes_interacted(store, pipeline, make_product):
    store.save_product(make_product("p1", [1.0, 0.0], age=1))
    store.save_product(make_product("p2", [1.0, 0.0], age=2))
    _save_user(store, history=HistoryPartition(neutral=["p2"]))

    products, scores = pipeline.recommend_with_scores("u1", "clothing", 10)

    assert [p.id for p in products] == ["p1"]
    assert scores["method"] == METHOD_NEWEST_FALLBACK


def test_unisex_user_sees_every_gender(store, pipeline, make_product):
    store.save_product(make_product("m", [1.0, 0.0], gender=Gender.MALE))
    store.save_product(make_product("f", [1.0, 0.0], gender=Gender.FEMALE))
    store.save_product(make_product("x", [1.0, 0.0], gender=Gender.UNISEX))
    _save_user(store, gender=Gender.UNISEX, clothing=[1.0, 0.0])

    products = pipeline.recommend("u1", "clothing", 10)

    assert {p.id for p in products} == {"m", "f", "x"}


def test_male_user_never_sees_female_products(store, pipeline, make_product):
    store.save_product(make_product("f", [1.0, 0.0], gender=Gender.FEMALE))
    store.save_product(make_product("m", [0.0, 1.0], gender=Gender.MALE))
    _save_user(store, gender=Gender.MALE, clothing=[1.0, 0.0])

    products = pipeline.recommend("u1", "clothing", 10)

    assert [p.id for p in products] == ["m"]


def test_only_requested_category_is_returned(store, pipeline, make_product):
    store.save_product(make_product("shirt", [1.0, 0.0], category=Category.CLOTHING))
    store.save_product(make_product("boot", [1.0, 0.0], category=Category.FOOTWEAR))
    _save_user(store, footwear=[1.0, 0.0])

    products = pipeline.recommend("u1", "footwear", 10)

    assert [p.id for p in products] == ["boot"]


def test_clothing_blends_in_footwear_preference(store, pipeline, make_product):
    store.save_product(make_product("p1", [0.6, 0.8]))
    _save_user(store, clothing=[1.0, 0.0], footwear=[0.0, 1.0])

    products, scores = pipeline.recommend_with_scores("u1", "clothing", 5)

    assert [p.id for p in products] == ["p1"]
    assert scores["primary_scores"]["p1"] == pytest.approx(0.48)
    assert scores["secondary_scores"]["p1"] == pytest.approx(0.16)
    assert scores["scores"]["p1"] == pytest.approx(0.64)
    assert scores["primary_weight"] == pytest.approx(0.8)
    assert scores["secondary_weight"] == pytest.approx(0.2)


def test_secondary_preference_can_change_order(store, pipeline, make_product):
    store.save_product(make_product("plain", [1.0, -1.0]))
    store.save_product(make_product("boosted", [1.0, 1.0]))
    _save_user(store, clothing=[1.0, 0.0], footwear=[0.0, 1.0])

    products = pipeline.recommend("u1", "clothing", 10)

    assert [p.id for p in products] == ["boosted", "plain"]


def test_empty_secondary_vector_scores_primary_only(store, pipeline, make_product):
    store.save_product(make_product("p1", [0.6, 0.8], category=Category.FOOTWEAR))
    _save_user(store, footwear=[1.0, 0.0])

    _, scores = pipeline.recommend_with_scores("u1", "footwear", 5)

    assert scores["scores"]["p1"] == pytest.approx(0.48)
    assert scores["secondary_scores"]["p1"] == 0.0
    assert scores["secondary_weight"] == 0.0


def test_accessories_ignore_other_categories(store, pipeline, make_product):
    store.save_product(make_product("bag", [0.6, 0.8], category=Category.ACCESSORIES))
    _save_user(store, accessories=[1.0, 0.0], clothing=[0.0, 1.0], footwear=[0.0, 1.0])

    _, scores = pipeline.recommend_with_scores("u1", "accessories", 5)

    assert scores["scores"]["bag"] == pytest.approx(0.48)
    assert scores["secondary_scores"]["bag"] == 0.0


def test_secondary_alone_does_not_rank(store, pipeline, make_product):
    store.save_product(make_product("old", [1.0, 0.0], age=1))
    store.save_product(make_product("new", [-1.0, 0.0], age=2))
    _save_user(store, footwear=[1.0, 0.0])

    products, scores = pipeline.recommend_with_scores("u1", "clothing", 10)

    assert [p.id for p in products] == ["new", "old"]
    assert scores["method"] == METHOD_NEWEST_FALLBACK


def test_no_candidates_returns_empty(store, pipeline):
    _save_user(store, clothing=[1.0, 0.0])

    products, scores = pipeline.recommend_with_scores("u1", "clothing", 10)

    assert products == []
    assert scores["method"] == METHOD_NEWEST_FALLBACK


def test_ties_keep_store_order(store, pipeline, make_product):
    for pid in ("a", "b", "c", "d"):
        store.save_product(make_product(pid, [1.0, 1.0]))
    _save_user(store, clothing=[1.0, 0.0])

    products = pipeline.recommend("u1", "clothing", 10)

    assert [p.id for p in products] == ["a", "b", "c", "d"]


def test_limit_is_capped(store, pipeline, make_product):
    for index in range(60):
        store.save_product(make_product(f"p{index}", [1.0, index / 60.0]))
    _save_user(store, clothing=[1.0, 0.0])

    products = pipeline.recommend("u1", "clothing", 100)

    assert len(products) == 50


def test_candidates_come_from_oversampled_window(store, make_product):
    pipeline = RecommendationPipeline(store, EngineConfig(candidate_oversampling=2))
    store.save_product(make_product("p0", [0.0, 1.0]))
    store.save_product(make_product("p1", [0.5, 1.0]))
    store.save_product(make_product("p2", [1.0, 0.0]))
    _save_user(store, clothing=[1.0, 0.0])

    products, scores = pipeline.recommend_with_scores("u1", "clothing", 1)

    # Only the first limit * oversampling products are scored
    assert [p.id for p in products] == ["p1"]
    assert set(scores["scores"]) == {"p1"}


@pytest.mark.parametrize("limit", [0, -3])
def test_limit_below_one_is_rejected(store, pipeline, limit):
    _save_user(store)

    with pytest.raises(ValidationError):
        pipeline.recommend("u1", "clothing", limit)


def test_unknown_category_is_rejected(store, pipeline):
    _save_user(store)

    with pytest.raises(ValidationError) as exc_info:
        pipeline.recommend("u1", "hats", 5)

    assert exc_info.value.status_code == 400


def test_unknown_user_is_rejected(pipeline):
    with pytest.raises(UserNotFoundError) as exc_info:
        pipeline.recommend("ghost", "clothing", 5)

    assert exc_info.value.status_code == 404
