"""Online preference learning from swipe interactions.

Each interaction nudges the user's preference vector for the product's
category toward (like, favorite, neutral) or away from (dislike) the product
embedding. Clothing and footwear also nudge each other at a reduced rate.
When an interaction is recategorized, the old update is undone before the
new one is applied.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from src.recommender.config import (
    CROSS_CATEGORY_PAIRS,
    DEFAULT_CONFIG,
    DEFAULT_LEARNING_RATE,
    EngineConfig,
)
from src.recommender.exceptions import DimensionMismatchError
from src.recommender.models import Category, CategoryPreferences, InteractionType

# Configure module logger
logger = logging.getLogger(__name__)

# Undo mapping used when exact reversal is disabled
LEGACY_UNDO_TYPES = {
    InteractionType.LIKE: InteractionType.DISLIKE,
    InteractionType.DISLIKE: InteractionType.LIKE,
    InteractionType.FAVORITE: InteractionType.NEUTRAL,
    InteractionType.NEUTRAL: InteractionType.NEUTRAL,
}


def _as_arrays(
    user_vector: Sequence[float], item_vector: Sequence[float]
) -> Tuple[np.ndarray, np.ndarray]:
    item = np.asarray(item_vector, dtype=np.float64)
    if len(user_vector) == 0:
        return np.zeros(len(item), dtype=np.float64), item

    user = np.asarray(user_vector, dtype=np.float64)
    if user.shape != item.shape:
        raise DimensionMismatchError(expected=len(user), actual=len(item))
    return user, item


def effective_rate(
    interaction_type: InteractionType,
    learning_rate: float,
    config: EngineConfig = DEFAULT_CONFIG,
) -> float:
    """Rate actually applied for an interaction type (favorites move further)."""
    if interaction_type is InteractionType.FAVORITE:
        return learning_rate * config.favorite_rate_multiplier
    return learning_rate


def _update_factor(
    interaction_type: InteractionType,
    learning_rate: float,
    config: EngineConfig,
) -> float:
    # Forward update rewritten as item + (user - item) * factor
    rate = effective_rate(interaction_type, learning_rate, config)
    if interaction_type in (InteractionType.LIKE, InteractionType.FAVORITE):
        return 1.0 - rate
    if interaction_type is InteractionType.DISLIKE:
        return 1.0 + rate
    return 1.0 - config.neutral_damping * rate


def update_preference_vector(
    user_vector: Sequence[float],
    item_vector: Sequence[float],
    interaction_type: InteractionType,
    learning_rate: float = DEFAULT_LEARNING_RATE,
    config: EngineConfig = DEFAULT_CONFIG,
) -> List[float]:
    """Move a preference vector in response to one interaction.

    Args:
        user_vector: Current preference vector. Empty means uninitialized and
            is treated as the zero vector of the item's dimension.
        item_vector: Embedding of the product interacted with.
        interaction_type: Swipe outcome driving the direction of the move.
        learning_rate: Fraction of the distance covered by the move.
        config: Engine constants (favorite multiplier, neutral damping).

    Returns:
        The updated preference vector as a new list.

    Raises:
        DimensionMismatchError: If a non-empty user vector and the item
            embedding differ in length.

    Example:
        >>> update_preference_vector([], [1.0, 0.0], InteractionType.LIKE)
        [0.1, 0.0]
    """
    user, item = _as_arrays(user_vector, item_vector)

    if interaction_type in (InteractionType.LIKE, InteractionType.FAVORITE):
        direction = item - user
    elif interaction_type is InteractionType.DISLIKE:
        direction = user - item
    else:
        direction = (item - user) * config.neutral_damping

    rate = effective_rate(interaction_type, learning_rate, config)
    return (user + direction * rate).tolist()


def reverse_preference_update(
    user_vector: Sequence[float],
    item_vector: Sequence[float],
    interaction_type: InteractionType,
    learning_rate: float = DEFAULT_LEARNING_RATE,
    config: EngineConfig = DEFAULT_CONFIG,
) -> List[float]:
    """Undo a previous update_preference_vector call for the same item.

    With config.exact_reversal the forward update is inverted algebraically,
    so reversing then reapplying the same interaction is an identity.
    Otherwise the legacy mapping is replayed as a forward update: like and
    dislike swap, favorite and neutral both undo as neutral.
    """
    if not config.exact_reversal:
        return update_preference_vector(
            user_vector,
            item_vector,
            LEGACY_UNDO_TYPES[interaction_type],
            learning_rate,
            config,
        )

    user, item = _as_arrays(user_vector, item_vector)
    factor = _update_factor(interaction_type, learning_rate, config)
    return (item + (user - item) / factor).tolist()


def apply_interaction(
    preferences: CategoryPreferences,
    category: Category,
    item_vector: Sequence[float],
    interaction_type: InteractionType,
    config: EngineConfig = DEFAULT_CONFIG,
) -> CategoryPreferences:
    """Apply a new interaction to a user's preferences.

    The product's own category is updated at the base learning rate and its
    paired category (clothing <-> footwear) at the cross-category rate.
    Accessories has no pair. Returns a new CategoryPreferences.
    """
    updated = preferences.model_copy(deep=True)

    setattr(
        updated,
        category.value,
        update_preference_vector(
            preferences.vector_for(category),
            item_vector,
            interaction_type,
            config.learning_rate,
            config,
        ),
    )

    paired = CROSS_CATEGORY_PAIRS.get(category)
    if paired is not None:
        setattr(
            updated,
            paired.value,
            update_preference_vector(
                preferences.vector_for(paired),
                item_vector,
                interaction_type,
                config.cross_category_learning_rate,
                config,
            ),
        )

    logger.debug(
        "Applied interaction to preferences",
        extra={
            "category": category.value,
            "interaction_type": interaction_type.value,
            "paired_category": paired.value if paired else None,
        },
    )
    return updated


def recategorize_preferences(
    preferences: CategoryPreferences,
    category: Category,
    item_vector: Sequence[float],
    old_type: InteractionType,
    new_type: InteractionType,
    config: EngineConfig = DEFAULT_CONFIG,
) -> CategoryPreferences:
    """Swap an interaction's effect on the product's own category vector.

    The old type is reversed and the new type applied, both at the base
    rate. The paired category keeps the nudge it received originally.
    """
    updated = preferences.model_copy(deep=True)
    reverted = reverse_preference_update(
        preferences.vector_for(category),
        item_vector,
        old_type,
        config.learning_rate,
        config,
    )
    setattr(
        updated,
        category.value,
        update_preference_vector(
            reverted, item_vector, new_type, config.learning_rate, config
        ),
    )

    logger.debug(
        "Recategorized preferences",
        extra={
            "category": category.value,
            "old_type": old_type.value,
            "new_type": new_type.value,
            "exact_reversal": config.exact_reversal,
        },
    )
    return updated
