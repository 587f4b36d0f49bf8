"""Domain models for SwipeRec.

Users, products and interactions are pydantic models. The engine treats
them as values: every operation returns updated copies and leaves its
inputs untouched.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel, Field

from src.recommender.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InteractionType(str, Enum):
    """Swipe outcome recorded for a (user, product) pair."""

    FAVORITE = "favorite"
    LIKE = "like"
    DISLIKE = "dislike"
    NEUTRAL = "neutral"

    @property
    def history_field(self) -> str:
        """Name of the HistoryPartition list holding this type."""
        return _HISTORY_FIELDS[self]

    @property
    def counter_field(self) -> str:
        """Name of the InteractionCounts counter for this type."""
        return _COUNTER_FIELDS[self]


class Category(str, Enum):
    CLOTHING = "clothing"
    FOOTWEAR = "footwear"
    ACCESSORIES = "accessories"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    UNISEX = "unisex"


_HISTORY_FIELDS = {
    InteractionType.FAVORITE: "favorites",
    InteractionType.LIKE: "liked",
    InteractionType.DISLIKE: "disliked",
    InteractionType.NEUTRAL: "neutral",
}

_COUNTER_FIELDS = {
    InteractionType.FAVORITE: "favorites",
    InteractionType.LIKE: "likes",
    InteractionType.DISLIKE: "dislikes",
    InteractionType.NEUTRAL: "neutral",
}

# History selectors accepted by history lookups, "all" spans every partition
HISTORY_TYPES = ("favorites", "liked", "disliked", "neutral", "all")


def _parse_enum(enum_cls: Type[E], value, label: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"Invalid {label} '{value}'. Expected one of: {allowed}",
            details={label.replace(" ", "_"): value},
        ) from None


def parse_interaction_type(value) -> InteractionType:
    """Convert a raw value to an InteractionType or raise ValidationError."""
    return _parse_enum(InteractionType, value, "interaction type")


def parse_category(value) -> Category:
    """Convert a raw value to a Category or raise ValidationError."""
    return _parse_enum(Category, value, "category")


def parse_gender(value) -> Gender:
    """Convert a raw value to a Gender or raise ValidationError."""
    return _parse_enum(Gender, value, "gender")


def parse_history_type(value: str) -> str:
    """Validate a history selector (a partition name or "all")."""
    if value not in HISTORY_TYPES:
        raise ValidationError(
            f"Invalid history type '{value}'. Expected one of: {', '.join(HISTORY_TYPES)}",
            details={"history_type": value},
        )
    return value


class InteractionCounts(BaseModel):
    """Per-product tally of how many users filed it under each type."""

    favorites: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)
    dislikes: int = Field(default=0, ge=0)
    neutral: int = Field(default=0, ge=0)

    def get(self, interaction_type: InteractionType) -> int:
        return getattr(self, interaction_type.counter_field)

    def total(self) -> int:
        return self.favorites + self.likes + self.dislikes + self.neutral


class HistoryPartition(BaseModel):
    """A user's swiped product ids, one ordered list per interaction type."""

    favorites: List[str] = Field(default_factory=list)
    liked: List[str] = Field(default_factory=list)
    disliked: List[str] = Field(default_factory=list)
    neutral: List[str] = Field(default_factory=list)

    def ids_for(self, interaction_type: InteractionType) -> List[str]:
        return getattr(self, interaction_type.history_field)


class CategoryPreferences(BaseModel):
    """Learned preference vectors, one per category. Empty until first use."""

    clothing: List[float] = Field(default_factory=list)
    footwear: List[float] = Field(default_factory=list)
    accessories: List[float] = Field(default_factory=list)

    def vector_for(self, category: Category) -> List[float]:
        return getattr(self, category.value)


class User(BaseModel):
    id: str = Field(..., description="User ID")
    username: str = Field(default="", description="Display name")
    gender: Gender = Field(default=Gender.UNISEX, description="Catalog gender filter")
    preferences: CategoryPreferences = Field(default_factory=CategoryPreferences)
    history: HistoryPartition = Field(default_factory=HistoryPartition)
    created_at: datetime = Field(default_factory=utcnow)


class Product(BaseModel):
    id: str = Field(..., description="Product ID")
    original_id: str = Field(..., description="ID in the upstream catalog")
    category: Category
    gender: Gender
    embedding: List[float] = Field(..., description="Upstream encoder embedding")
    name: str
    description: str = ""
    image_url: str
    price: float = 0.0
    interaction_counts: InteractionCounts = Field(default_factory=InteractionCounts)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Interaction(BaseModel):
    user_id: str
    product_id: str
    type: InteractionType
    category: Category = Field(..., description="Copied from the product at creation")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class HistoryEntry(BaseModel):
    """A product from a user's history with the type it is filed under."""

    product: Product
    interaction_type: Optional[InteractionType] = None
