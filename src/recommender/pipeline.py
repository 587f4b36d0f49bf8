"""Recommendation ranking.

Scores unseen, gender-appropriate products in a category against the
user's preference vector for that category, blended with the paired
category's vector for clothing and footwear. Users without a learned
vector get the newest products instead.
"""

import logging
import time
from typing import Dict, FrozenSet, List, Optional, Tuple

from src.recommender.config import (
    CROSS_CATEGORY_PAIRS,
    DEFAULT_CONFIG,
    DEFAULT_RECOMMENDATION_LIMIT,
    EngineConfig,
)
from src.recommender.exceptions import UserNotFoundError, ValidationError
from src.recommender.ledger import interacted_product_ids
from src.recommender.models import Gender, Product, User, parse_category
from src.recommender.store import ProductQuery, ProductSort, RecommendationStore
from src.recommender.vectors import cosine_similarity

# Configure module logger
logger = logging.getLogger(__name__)

METHOD_SIMILARITY = "similarity"
METHOD_NEWEST_FALLBACK = "newest_fallback"


def gender_filter(user: User) -> Optional[FrozenSet[Gender]]:
    """Genders a user is shown. None means no restriction (unisex users)."""
    if user.gender is Gender.UNISEX:
        return None
    return frozenset({user.gender, Gender.UNISEX})


class RecommendationPipeline:
    """Ranks catalog products for a user and category."""

    def __init__(
        self,
        store: RecommendationStore,
        config: EngineConfig = DEFAULT_CONFIG,
    ):
        self.store = store
        self.config = config

        logger.info(
            f"Initialized RecommendationPipeline: "
            f"primary weight={config.primary_weight:.2f}, "
            f"secondary weight={config.secondary_weight:.2f}, "
            f"oversampling={config.candidate_oversampling}"
        )

    def _resolve_limit(self, limit: int) -> int:
        if limit < 1:
            raise ValidationError(
                f"limit must be at least 1, got {limit}", details={"limit": limit}
            )
        return min(limit, self.config.max_limit)

    def _score(
        self,
        product: Product,
        primary: List[float],
        secondary: List[float],
    ) -> Tuple[float, float, float]:
        primary_score = cosine_similarity(primary, product.embedding) * self.config.primary_weight
        secondary_score = 0.0
        if secondary:
            secondary_score = (
                cosine_similarity(secondary, product.embedding) * self.config.secondary_weight
            )
        return primary_score, secondary_score, primary_score + secondary_score

    def recommend(
        self,
        user_id: str,
        category,
        limit: int = DEFAULT_RECOMMENDATION_LIMIT,
    ) -> List[Product]:
        """Get up to limit recommended products for a user in a category."""
        products, _ = self.recommend_with_scores(user_id, category, limit)
        return products

    def recommend_with_scores(
        self,
        user_id: str,
        category,
        limit: int = DEFAULT_RECOMMENDATION_LIMIT,
    ) -> Tuple[List[Product], Dict]:
        """Get recommendations together with a score breakdown.

        Args:
            user_id: User to recommend for.
            category: Category (or its string value) to recommend from.
            limit: Maximum number of products, capped at config.max_limit.

        Returns:
            A tuple of the ranked products and a dict with the method used
            ("similarity" or "newest_fallback") and per-product scores.

        Raises:
            ValidationError: If category is unknown or limit is below 1.
            UserNotFoundError: If the user does not exist.
        """
        start_time = time.time()
        category = parse_category(category)
        limit = self._resolve_limit(limit)

        user = self.store.find_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        primary = user.preferences.vector_for(category)
        paired = CROSS_CATEGORY_PAIRS.get(category)
        secondary = user.preferences.vector_for(paired) if paired is not None else []

        query = ProductQuery(
            category=category,
            genders=gender_filter(user),
            exclude_ids=frozenset(interacted_product_ids(user.history)),
        )
        candidates = self.store.find_products(
            query, limit=limit * self.config.candidate_oversampling
        )

        if not candidates or not primary:
            logger.info(
                "Using newest-first fallback",
                extra={
                    "user_id": user_id,
                    "category": category.value,
                    "num_candidates": len(candidates),
                    "has_preferences": bool(primary),
                },
            )
            fallback = self.store.find_products(query, limit=limit, sort=ProductSort.NEWEST)
            return fallback, {"method": METHOD_NEWEST_FALLBACK}

        primary_scores: Dict[str, float] = {}
        secondary_scores: Dict[str, float] = {}
        scores: Dict[str, float] = {}
        for product in candidates:
            p_score, s_score, total = self._score(product, primary, secondary)
            primary_scores[product.id] = p_score
            secondary_scores[product.id] = s_score
            scores[product.id] = total

        # sorted() is stable, so equal scores keep store order
        ranked = sorted(candidates, key=lambda p: scores[p.id], reverse=True)[:limit]

        logger.info(
            "Recommendations generated",
            extra={
                "user_id": user_id,
                "category": category.value,
                "num_candidates": len(candidates),
                "num_recommendations": len(ranked),
                "uses_secondary": bool(secondary),
                "total_time_ms": round((time.time() - start_time) * 1000, 2),
            },
        )

        breakdown = {
            "method": METHOD_SIMILARITY,
            "primary_scores": {p.id: primary_scores[p.id] for p in ranked},
            "secondary_scores": {p.id: secondary_scores[p.id] for p in ranked},
            "scores": {p.id: scores[p.id] for p in ranked},
            "primary_weight": self.config.primary_weight,
            "secondary_weight": self.config.secondary_weight if secondary else 0.0,
        }
        return ranked, breakdown
