"""Tests for interaction bookkeeping."""

import numpy as np
import pytest

from src.recommender.exceptions import InteractionNotFoundError
from src.recommender.ledger import (
    InteractionStatus,
    interacted_product_ids,
    interaction_type_for,
    move_to_partition,
    recategorize,
    record_interaction,
)
from src.recommender.models import (
    Category,
    HistoryPartition,
    InteractionCounts,
    InteractionType,
)


@pytest.fixture
def product(make_product):
    return make_product("p1", [1.0, 0.5, -0.5], category=Category.CLOTHING)


@pytest.fixture
def user(make_user):
    return make_user("u1")


def test_first_interaction_creates_record(user, product):
    outcome = record_interaction(user, product, None, InteractionType.LIKE)

    assert outcome.status is InteractionStatus.CREATED
    assert outcome.changed
    assert outcome.interaction.type is InteractionType.LIKE
    assert outcome.interaction.category is Category.CLOTHING
    assert outcome.product.interaction_counts.likes == 1
    assert outcome.product.interaction_counts.total() == 1
    assert outcome.user.history.liked == ["p1"]
    np.testing.assert_allclose(outcome.user.preferences.clothing, [0.1, 0.05, -0.05])
    np.testing.assert_allclose(outcome.user.preferences.footwear, [0.02, 0.01, -0.01])


def test_inputs_are_left_untouched(user, product):
    record_interaction(user, product, None, InteractionType.FAVORITE)

    assert user.history.favorites == []
    assert user.preferences.clothing == []
    assert product.interaction_counts.favorites == 0


def test_recording_same_type_twice_is_noop(user, product):
    first = record_interaction(user, product, None, InteractionType.DISLIKE)

    second = record_interaction(
        first.user, first.product, first.interaction, InteractionType.DISLIKE
    )

    assert second.status is InteractionStatus.UNCHANGED
    assert not second.changed
    assert second.user == first.user
    assert second.product.interaction_counts == first.product.interaction_counts
    assert second.user.preferences == first.user.preferences


def test_recording_different_type_recategorizes(user, product):
    first = record_interaction(user, product, None, InteractionType.LIKE)

    second = record_interaction(
        first.user, first.product, first.interaction, InteractionType.FAVORITE
    )

    assert second.status is InteractionStatus.RECATEGORIZED
    assert second.previous_type is InteractionType.LIKE
    assert second.interaction.type is InteractionType.FAVORITE
    assert second.user.history.liked == []
    assert second.user.history.favorites == ["p1"]
    assert second.product.interaction_counts.likes == 0
    assert second.product.interaction_counts.favorites == 1


def test_recategorize_requires_existing_interaction(user, product):
    with pytest.raises(InteractionNotFoundError) as exc_info:
        recategorize(user, product, None, InteractionType.LIKE)

    assert exc_info.value.status_code == 404
    assert exc_info.value.details == {"user_id": "u1", "product_id": "p1"}


def test_recategorize_to_same_type_is_noop(user, product):
    first = record_interaction(user, product, None, InteractionType.NEUTRAL)

    outcome = recategorize(first.user, first.product, first.interaction, InteractionType.NEUTRAL)

    assert outcome.status is InteractionStatus.UNCHANGED
    assert outcome.user.history.neutral == ["p1"]


def test_recategorize_moves_partition_and_counts(user, product):
    first = record_interaction(user, product, None, InteractionType.LIKE)

    outcome = recategorize(first.user, first.product, first.interaction, InteractionType.DISLIKE)

    assert outcome.status is InteractionStatus.RECATEGORIZED
    assert outcome.user.history.liked == []
    assert outcome.user.history.disliked == ["p1"]
    assert outcome.product.interaction_counts.likes == 0
    assert outcome.product.interaction_counts.dislikes == 1
    assert outcome.interaction.created_at == first.interaction.created_at


def test_like_dislike_like_round_trip_restores_preferences(user, product):
    liked = record_interaction(user, product, None, InteractionType.LIKE)

    disliked = recategorize(liked.user, liked.product, liked.interaction, InteractionType.DISLIKE)
    relike = recategorize(
        disliked.user, disliked.product, disliked.interaction, InteractionType.LIKE
    )

    np.testing.assert_allclose(
        relike.user.preferences.clothing, liked.user.preferences.clothing, atol=1e-12
    )
    assert relike.user.history == liked.user.history
    assert relike.product.interaction_counts == liked.product.interaction_counts


def test_counts_track_distinct_users(make_user, product):
    current = product
    outcomes = {}
    for user_id, interaction_type in [
        ("u1", InteractionType.LIKE),
        ("u2", InteractionType.DISLIKE),
        ("u3", InteractionType.FAVORITE),
    ]:
        outcome = record_interaction(make_user(user_id), current, None, interaction_type)
        outcomes[user_id] = outcome
        current = outcome.product

    first = outcomes["u1"]
    recategorized = recategorize(first.user, current, first.interaction, InteractionType.DISLIKE)
    counts = recategorized.product.interaction_counts

    assert counts == InteractionCounts(favorites=1, likes=0, dislikes=2, neutral=0)
    assert counts.total() == 3


def test_counts_never_go_negative(user, product):
    first = record_interaction(user, product, None, InteractionType.LIKE)
    # Counter drifted in storage, e.g. a product re-imported with fresh counts
    reset_product = first.product.model_copy(update={"interaction_counts": InteractionCounts()})

    outcome = recategorize(first.user, reset_product, first.interaction, InteractionType.NEUTRAL)

    assert outcome.product.interaction_counts.likes == 0
    assert outcome.product.interaction_counts.neutral == 1


def test_move_to_partition_keeps_single_membership():
    history = HistoryPartition(favorites=["a", "p1"], liked=["p1", "b"], neutral=["c"])

    updated = move_to_partition(history, "p1", InteractionType.NEUTRAL)

    assert updated.favorites == ["a"]
    assert updated.liked == ["b"]
    assert updated.neutral == ["c", "p1"]
    assert history.favorites == ["a", "p1"]


def test_interacted_ids_and_lookup():
    history = HistoryPartition(favorites=["a"], liked=["b"], disliked=["c"], neutral=["d"])

    assert interacted_product_ids(history) == ["a", "b", "c", "d"]
    assert interaction_type_for(history, "c") is InteractionType.DISLIKE
    assert interaction_type_for(history, "zzz") is None
