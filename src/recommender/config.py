"""Engine configuration.

Named rates and weights used by the preference update rule and the
recommendation pipeline. EngineConfig is a pydantic-settings model, so every
field can be overridden for a deployment through a SWIPEREC_<FIELD>
environment variable (e.g. SWIPEREC_LEARNING_RATE=0.05) or per engine
instance through keyword arguments.
"""

import logging
from functools import lru_cache
from typing import Dict

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.recommender.models import Category

# Configure module logger
logger = logging.getLogger(__name__)

# Preference update constants
DEFAULT_LEARNING_RATE = 0.1
CROSS_CATEGORY_LEARNING_RATE = 0.02  # 20% of the base rate
FAVORITE_RATE_MULTIPLIER = 1.5
NEUTRAL_DAMPING = 0.3

# Scoring constants
PRIMARY_WEIGHT = 0.8
SECONDARY_WEIGHT = 0.2
CANDIDATE_OVERSAMPLING = 3

# Request limits
DEFAULT_RECOMMENDATION_LIMIT = 10
MAX_RECOMMENDATION_LIMIT = 50

# Categories whose preference vectors influence each other
CROSS_CATEGORY_PAIRS: Dict[Category, Category] = {
    Category.CLOTHING: Category.FOOTWEAR,
    Category.FOOTWEAR: Category.CLOTHING,
}

ENV_PREFIX = "SWIPEREC_"


class EngineConfig(BaseSettings):
    """Rates and weights for the preference engine.

    Attributes:
        learning_rate: Base rate for the interacted product's own category.
        cross_category_learning_rate: Rate used for the paired category.
        favorite_rate_multiplier: Multiplier applied to the rate on favorites.
        neutral_damping: Fraction of the like-direction used for neutral swipes.
        primary_weight: Weight of the requested category's similarity.
        secondary_weight: Weight of the paired category's similarity.
        candidate_oversampling: Candidates fetched per requested result.
        max_limit: Hard cap on recommendations per request.
        exact_reversal: Undo recategorized interactions with the exact
            inverse of the forward update. When False, like and dislike are
            swapped and favorite/neutral are undone as a neutral update.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    learning_rate: float = Field(default=DEFAULT_LEARNING_RATE, gt=0, lt=1)
    cross_category_learning_rate: float = Field(
        default=CROSS_CATEGORY_LEARNING_RATE, ge=0, lt=1
    )
    favorite_rate_multiplier: float = Field(default=FAVORITE_RATE_MULTIPLIER, gt=0)
    neutral_damping: float = Field(default=NEUTRAL_DAMPING, ge=0)
    primary_weight: float = Field(default=PRIMARY_WEIGHT, ge=0)
    secondary_weight: float = Field(default=SECONDARY_WEIGHT, ge=0)
    candidate_oversampling: int = Field(default=CANDIDATE_OVERSAMPLING, ge=1)
    max_limit: int = Field(default=MAX_RECOMMENDATION_LIMIT, ge=1)
    exact_reversal: bool = True

    @model_validator(mode="after")
    def check_update_factors(self) -> "EngineConfig":
        # Exact reversal divides by 1 - effective rate; keep every factor positive
        if self.learning_rate * self.favorite_rate_multiplier >= 1:
            raise ValueError("learning_rate * favorite_rate_multiplier must be below 1")
        if self.learning_rate * self.neutral_damping >= 1:
            raise ValueError("learning_rate * neutral_damping must be below 1")
        return self


@lru_cache()
def get_engine_config() -> EngineConfig:
    """Return the process-wide config read from SWIPEREC_* variables."""
    config = EngineConfig()
    logger.info("Loaded engine config", extra={"engine_config": config.model_dump()})
    return config


DEFAULT_CONFIG = EngineConfig()
