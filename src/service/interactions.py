"""Swipe and recommendation operations.

SwipeService is what an outer layer (HTTP handlers, CLI, jobs) calls. It
validates inputs, loads records from the store, runs the engine on copies
and persists what changed. Store failures surface as DependencyError.
"""

import logging
import time
from typing import Dict, Iterable, List, Optional, Tuple, Union

from src.recommender import ledger
from src.recommender.catalog import ImportSummary, import_products
from src.recommender.config import DEFAULT_CONFIG, DEFAULT_RECOMMENDATION_LIMIT, EngineConfig
from src.recommender.exceptions import (
    DependencyError,
    ProductNotFoundError,
    SwipeRecException,
    UserNotFoundError,
)
from src.recommender.ledger import InteractionOutcome, InteractionStatus
from src.recommender.models import (
    HistoryEntry,
    Interaction,
    InteractionType,
    Product,
    User,
    parse_category,
    parse_history_type,
    parse_interaction_type,
)
from src.recommender.pipeline import METHOD_NEWEST_FALLBACK, RecommendationPipeline
from src.recommender.store import ProductQuery, ProductSort, RecommendationStore
from src.service.metrics import MetricsService, metrics_service

# Configure module logger
logger = logging.getLogger(__name__)


def clamp_limit(limit: int, max_limit: int) -> int:
    """Clamp a requested result count into [1, max_limit]."""
    return max(1, min(int(limit), max_limit))


class GuardedStore(RecommendationStore):
    """Store wrapper reporting collaborator failures as DependencyError.

    Engine errors pass through unchanged. Only the store calls are guarded,
    so a fault in ranking or bookkeeping code is never reported as an
    unavailable store.
    """

    def __init__(self, store: RecommendationStore):
        self._store = store

    def _call(self, operation: str, *args, **kwargs):
        try:
            return getattr(self._store, operation)(*args, **kwargs)
        except SwipeRecException:
            # Re-raise engine errors as-is
            raise
        except Exception as e:
            logger.error(
                f"Store operation failed: {operation}",
                extra={"operation": operation, "error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            raise DependencyError(operation, e) from e

    def find_user_by_id(self, user_id: str) -> Optional[User]:
        return self._call("find_user_by_id", user_id)

    def save_user(self, user: User) -> None:
        self._call("save_user", user)

    def find_product_by_id(self, product_id: str) -> Optional[Product]:
        return self._call("find_product_by_id", product_id)

    def find_product_by_original_id(self, original_id: str) -> Optional[Product]:
        return self._call("find_product_by_original_id", original_id)

    def find_products(
        self,
        query: ProductQuery,
        limit: Optional[int] = None,
        sort: ProductSort = ProductSort.INSERTION,
    ) -> List[Product]:
        return self._call("find_products", query, limit, sort)

    def save_product(self, product: Product) -> None:
        self._call("save_product", product)

    def find_interaction(self, user_id: str, product_id: str) -> Optional[Interaction]:
        return self._call("find_interaction", user_id, product_id)

    def create_interaction(self, interaction: Interaction) -> None:
        self._call("create_interaction", interaction)

    def save_interaction(self, interaction: Interaction) -> None:
        self._call("save_interaction", interaction)


class SwipeService:
    """Entry point for recording swipes and serving recommendations."""

    def __init__(
        self,
        store: RecommendationStore,
        config: EngineConfig = DEFAULT_CONFIG,
        metrics: Optional[MetricsService] = None,
    ):
        self.store = GuardedStore(store)
        self.config = config
        self.metrics = metrics or metrics_service
        self.pipeline = RecommendationPipeline(self.store, config)

    def _load_user(self, user_id: str) -> User:
        user = self.store.find_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def _load_product(self, product_id: str) -> Product:
        product = self.store.find_product_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def _persist(self, outcome: InteractionOutcome, user: User, product: Product) -> None:
        """Write a changed outcome, interaction last.

        The stored interaction marks a swipe as recorded, so it is written
        only after the user and product. If any write fails, the user and
        product are put back to their loaded state.
        """
        if not outcome.changed:
            return

        try:
            self.store.save_user(outcome.user)
            self.store.save_product(outcome.product)
            if outcome.status is InteractionStatus.CREATED:
                self.store.create_interaction(outcome.interaction)
            else:
                self.store.save_interaction(outcome.interaction)
        except DependencyError:
            self._restore(user, product)
            raise

    def _restore(self, user: User, product: Product) -> None:
        for operation, record in (("save_user", user), ("save_product", product)):
            try:
                getattr(self.store, operation)(record)
            except DependencyError:
                logger.error(
                    "Rollback write failed, record may be out of step",
                    extra={"operation": operation, "record_id": record.id},
                )
        logger.warning(
            "Rolled back partial interaction write",
            extra={"user_id": user.id, "product_id": product.id},
        )

    def record_interaction(
        self,
        user_id: str,
        product_id: str,
        interaction_type: Union[InteractionType, str],
    ) -> InteractionOutcome:
        """Record a swipe.

        Re-recording the same type is a no-op with status UNCHANGED; a
        different type for an already swiped product recategorizes it.

        Raises:
            ValidationError: If interaction_type is unknown, or the product
                embedding does not fit the user's preference vectors.
            UserNotFoundError: If the user does not exist.
            ProductNotFoundError: If the product does not exist.
            DependencyError: If the store fails. Nothing stays written.
        """
        interaction_type = parse_interaction_type(interaction_type)
        user = self._load_user(user_id)
        product = self._load_product(product_id)
        existing = self.store.find_interaction(user_id, product_id)

        outcome = ledger.record_interaction(user, product, existing, interaction_type, self.config)
        self._persist(outcome, user, product)
        self.metrics.record_interaction(outcome.status.value)
        return outcome

    def recategorize(
        self,
        user_id: str,
        product_id: str,
        new_type: Union[InteractionType, str],
    ) -> InteractionOutcome:
        """Change the type of an existing swipe.

        Raises:
            ValidationError: If new_type is unknown.
            UserNotFoundError: If the user does not exist.
            ProductNotFoundError: If the product does not exist.
            InteractionNotFoundError: If the user never swiped the product.
            DependencyError: If the store fails. Nothing stays written.
        """
        new_type = parse_interaction_type(new_type)
        user = self._load_user(user_id)
        product = self._load_product(product_id)
        existing = self.store.find_interaction(user_id, product_id)

        outcome = ledger.recategorize(user, product, existing, new_type, self.config)
        self._persist(outcome, user, product)
        self.metrics.record_interaction(outcome.status.value)
        return outcome

    def recommend(
        self,
        user_id: str,
        category,
        limit: int = DEFAULT_RECOMMENDATION_LIMIT,
        return_scores: bool = False,
    ) -> Union[List[Product], Tuple[List[Product], Dict]]:
        """Get recommended products for a user in a category.

        limit is clamped into [1, config.max_limit] before ranking.

        Raises:
            ValidationError: If category is unknown.
            UserNotFoundError: If the user does not exist.
            DependencyError: If the store fails.
        """
        start_time = time.time()
        category = parse_category(category)
        limit = clamp_limit(limit, self.config.max_limit)

        products, breakdown = self.pipeline.recommend_with_scores(user_id, category, limit)

        latency_ms = (time.time() - start_time) * 1000
        self.metrics.record_recommendation(
            latency_ms, fallback=breakdown["method"] == METHOD_NEWEST_FALLBACK
        )

        if return_scores:
            return products, breakdown
        return products

    def get_interaction_history(
        self,
        user_id: str,
        history_type: str = "all",
        category=None,
    ) -> List[HistoryEntry]:
        """List products from a user's history, newest first.

        Args:
            user_id: User whose history to read.
            history_type: "favorites", "liked", "disliked", "neutral" or "all".
            category: Optional category filter.

        Returns:
            Products annotated with the interaction type they are filed under.
        """
        history_type = parse_history_type(history_type)
        category = parse_category(category) if category is not None else None
        user = self._load_user(user_id)

        if history_type == "all":
            product_ids = ledger.interacted_product_ids(user.history)
        else:
            product_ids = list(getattr(user.history, history_type))

        query = ProductQuery(category=category, product_ids=frozenset(product_ids))
        products = self.store.find_products(query, None, ProductSort.NEWEST)

        return [
            HistoryEntry(
                product=product,
                interaction_type=ledger.interaction_type_for(user.history, product.id),
            )
            for product in products
        ]

    def import_products(self, records: Iterable[Dict]) -> ImportSummary:
        """Upsert catalog records, skipping invalid ones."""
        return import_products(self.store, records)
