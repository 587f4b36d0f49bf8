"""Interaction bookkeeping for swipes.

Keeps one interaction per (user, product), the per-product interaction
counters and the user's history partitions in step with each other, and
drives the preference update for every transition. Records are taken by
value; outcomes carry updated copies for the caller to persist.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from src.recommender.config import DEFAULT_CONFIG, EngineConfig
from src.recommender.exceptions import InteractionNotFoundError
from src.recommender.models import (
    HistoryPartition,
    Interaction,
    InteractionType,
    Product,
    User,
    utcnow,
)
from src.recommender.preference import apply_interaction, recategorize_preferences

# Configure module logger
logger = logging.getLogger(__name__)


class InteractionStatus(str, Enum):
    CREATED = "created"
    RECATEGORIZED = "recategorized"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class InteractionOutcome:
    """Result of recording or recategorizing an interaction.

    Attributes:
        status: What happened. UNCHANGED means nothing needs persisting.
        user: User with updated history and preferences.
        product: Product with updated interaction counts.
        interaction: The interaction as it now stands.
        previous_type: Type before a recategorization, else None.
    """

    status: InteractionStatus
    user: User
    product: Product
    interaction: Interaction
    previous_type: Optional[InteractionType] = None

    @property
    def changed(self) -> bool:
        return self.status is not InteractionStatus.UNCHANGED


def interacted_product_ids(history: HistoryPartition) -> List[str]:
    """All product ids across the four partitions, in partition order."""
    ids: List[str] = []
    for interaction_type in InteractionType:
        ids.extend(history.ids_for(interaction_type))
    return ids


def interaction_type_for(
    history: HistoryPartition, product_id: str
) -> Optional[InteractionType]:
    """Return the partition type holding a product id, or None."""
    for interaction_type in InteractionType:
        if product_id in history.ids_for(interaction_type):
            return interaction_type
    return None


def move_to_partition(
    history: HistoryPartition, product_id: str, interaction_type: InteractionType
) -> HistoryPartition:
    """Return a copy of history with product_id filed under one type only."""
    updated = history.model_copy(deep=True)
    for partition_type in InteractionType:
        ids = updated.ids_for(partition_type)
        if product_id in ids:
            setattr(
                updated,
                partition_type.history_field,
                [pid for pid in ids if pid != product_id],
            )
    updated.ids_for(interaction_type).append(product_id)
    return updated


def _unchanged(user: User, product: Product, interaction: Interaction) -> InteractionOutcome:
    return InteractionOutcome(
        status=InteractionStatus.UNCHANGED,
        user=user,
        product=product,
        interaction=interaction,
    )


def record_interaction(
    user: User,
    product: Product,
    existing: Optional[Interaction],
    interaction_type: InteractionType,
    config: EngineConfig = DEFAULT_CONFIG,
) -> InteractionOutcome:
    """Record a swipe of user on product.

    Re-recording the type already on file is a no-op. Recording a different
    type for a product the user already swiped is a recategorization.
    Otherwise a new interaction is created, the product's counter for the
    type is incremented, the product id is filed in the matching history
    partition and the preference vectors are updated.
    """
    if existing is not None:
        if existing.type is interaction_type:
            logger.info(
                "Interaction already recorded",
                extra={
                    "user_id": user.id,
                    "product_id": product.id,
                    "interaction_type": interaction_type.value,
                },
            )
            return _unchanged(user, product, existing)
        return recategorize(user, product, existing, interaction_type, config)

    now = utcnow()
    interaction = Interaction(
        user_id=user.id,
        product_id=product.id,
        type=interaction_type,
        category=product.category,
        created_at=now,
        updated_at=now,
    )

    counts = product.interaction_counts.model_copy()
    setattr(counts, interaction_type.counter_field, counts.get(interaction_type) + 1)
    updated_product = product.model_copy(
        update={"interaction_counts": counts, "updated_at": now}, deep=True
    )

    updated_user = user.model_copy(
        update={
            "history": move_to_partition(user.history, product.id, interaction_type),
            "preferences": apply_interaction(
                user.preferences,
                product.category,
                product.embedding,
                interaction_type,
                config,
            ),
        },
        deep=True,
    )

    logger.info(
        "Interaction created",
        extra={
            "user_id": user.id,
            "product_id": product.id,
            "interaction_type": interaction_type.value,
            "category": product.category.value,
        },
    )

    return InteractionOutcome(
        status=InteractionStatus.CREATED,
        user=updated_user,
        product=updated_product,
        interaction=interaction,
    )


def recategorize(
    user: User,
    product: Product,
    existing: Optional[Interaction],
    new_type: InteractionType,
    config: EngineConfig = DEFAULT_CONFIG,
) -> InteractionOutcome:
    """Change the type of an existing interaction.

    Moves the product id between history partitions, moves one count from
    the old counter to the new one, and replaces the old type's effect on
    the product category's preference vector with the new type's.

    Raises:
        InteractionNotFoundError: If the user never interacted with product.
    """
    if existing is None:
        raise InteractionNotFoundError(user.id, product.id)

    old_type = existing.type
    if old_type is new_type:
        logger.info(
            "No change in interaction type",
            extra={
                "user_id": user.id,
                "product_id": product.id,
                "interaction_type": new_type.value,
            },
        )
        return _unchanged(user, product, existing)

    now = utcnow()
    interaction = existing.model_copy(update={"type": new_type, "updated_at": now})

    counts = product.interaction_counts.model_copy()
    setattr(counts, old_type.counter_field, max(0, counts.get(old_type) - 1))
    setattr(counts, new_type.counter_field, counts.get(new_type) + 1)
    updated_product = product.model_copy(
        update={"interaction_counts": counts, "updated_at": now}, deep=True
    )

    updated_user = user.model_copy(
        update={
            "history": move_to_partition(user.history, product.id, new_type),
            "preferences": recategorize_preferences(
                user.preferences,
                product.category,
                product.embedding,
                old_type,
                new_type,
                config,
            ),
        },
        deep=True,
    )

    logger.info(
        "Interaction recategorized",
        extra={
            "user_id": user.id,
            "product_id": product.id,
            "old_type": old_type.value,
            "new_type": new_type.value,
        },
    )

    return InteractionOutcome(
        status=InteractionStatus.RECATEGORIZED,
        user=updated_user,
        product=updated_product,
        interaction=interaction,
        previous_type=old_type,
    )
