"""Persistence collaborators for users, products and interactions.

RecommendationStore is the interface the engine reads and writes through.
InMemoryStore implements it with dictionaries and can snapshot its documents
to disk with joblib, which is enough for local runs, scripts and tests.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Tuple

import joblib

from src.recommender.models import Category, Gender, Interaction, Product, User

# Configure module logger
logger = logging.getLogger(__name__)

SNAPSHOT_FILENAME = "swiperec_store.joblib"
SNAPSHOT_VERSION = 1


class ProductSort(str, Enum):
    INSERTION = "insertion"  # order products were first saved
    NEWEST = "newest"  # created_at descending


@dataclass(frozen=True)
class ProductQuery:
    """Filter for product lookups.

    Attributes:
        category: Only products in this category, any when None.
        genders: Only products with one of these genders, any when None.
        exclude_ids: Product ids to leave out.
        product_ids: Only these product ids, any when None.
    """

    category: Optional[Category] = None
    genders: Optional[FrozenSet[Gender]] = None
    exclude_ids: FrozenSet[str] = frozenset()
    product_ids: Optional[FrozenSet[str]] = None

    def matches(self, product: Product) -> bool:
        if self.category is not None and product.category is not self.category:
            return False
        if self.genders is not None and product.gender not in self.genders:
            return False
        if product.id in self.exclude_ids:
            return False
        if self.product_ids is not None and product.id not in self.product_ids:
            return False
        return True


class RecommendationStore(ABC):
    """Document store holding users, products and interactions."""

    @abstractmethod
    def find_user_by_id(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def save_user(self, user: User) -> None:
        ...

    @abstractmethod
    def find_product_by_id(self, product_id: str) -> Optional[Product]:
        ...

    @abstractmethod
    def find_product_by_original_id(self, original_id: str) -> Optional[Product]:
        ...

    @abstractmethod
    def find_products(
        self,
        query: ProductQuery,
        limit: Optional[int] = None,
        sort: ProductSort = ProductSort.INSERTION,
    ) -> List[Product]:
        ...

    @abstractmethod
    def save_product(self, product: Product) -> None:
        ...

    @abstractmethod
    def find_interaction(self, user_id: str, product_id: str) -> Optional[Interaction]:
        ...

    @abstractmethod
    def create_interaction(self, interaction: Interaction) -> None:
        """Insert a new interaction. Raises ValueError if the pair exists."""

    @abstractmethod
    def save_interaction(self, interaction: Interaction) -> None:
        ...


class InMemoryStore(RecommendationStore):
    """Dictionary-backed store. Returns copies so callers never alias state."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: Dict[str, User] = {}
        self._products: Dict[str, Product] = {}
        self._interactions: Dict[Tuple[str, str], Interaction] = {}

    def find_user_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy(deep=True) if user is not None else None

    def save_user(self, user: User) -> None:
        with self._lock:
            self._users[user.id] = user.model_copy(deep=True)

    def find_product_by_id(self, product_id: str) -> Optional[Product]:
        with self._lock:
            product = self._products.get(product_id)
            return product.model_copy(deep=True) if product is not None else None

    def find_product_by_original_id(self, original_id: str) -> Optional[Product]:
        with self._lock:
            for product in self._products.values():
                if product.original_id == original_id:
                    return product.model_copy(deep=True)
        return None

    def find_products(
        self,
        query: ProductQuery,
        limit: Optional[int] = None,
        sort: ProductSort = ProductSort.INSERTION,
    ) -> List[Product]:
        with self._lock:
            matches = [p for p in self._products.values() if query.matches(p)]

        if sort is ProductSort.NEWEST:
            matches.sort(key=lambda p: p.created_at, reverse=True)
        if limit is not None:
            matches = matches[:limit]

        return [p.model_copy(deep=True) for p in matches]

    def save_product(self, product: Product) -> None:
        with self._lock:
            self._products[product.id] = product.model_copy(deep=True)

    def find_interaction(self, user_id: str, product_id: str) -> Optional[Interaction]:
        with self._lock:
            interaction = self._interactions.get((user_id, product_id))
            return interaction.model_copy() if interaction is not None else None

    def create_interaction(self, interaction: Interaction) -> None:
        key = (interaction.user_id, interaction.product_id)
        with self._lock:
            if key in self._interactions:
                raise ValueError(
                    f"Interaction already exists for user {interaction.user_id} "
                    f"and product {interaction.product_id}"
                )
            self._interactions[key] = interaction.model_copy()

    def save_interaction(self, interaction: Interaction) -> None:
        with self._lock:
            self._interactions[(interaction.user_id, interaction.product_id)] = (
                interaction.model_copy()
            )

    def save_snapshot(self, output_dir: str, filename: str = SNAPSHOT_FILENAME) -> Path:
        """Write every document to a joblib file in output_dir.

        Returns:
            Path of the written snapshot file.
        """
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)
        snapshot_file = output_path / filename

        with self._lock:
            payload = {
                "version": SNAPSHOT_VERSION,
                "users": [u.model_dump(mode="json") for u in self._users.values()],
                "products": [p.model_dump(mode="json") for p in self._products.values()],
                "interactions": [
                    i.model_dump(mode="json") for i in self._interactions.values()
                ],
            }

        joblib.dump(payload, snapshot_file)
        logger.info(
            f"Saved store snapshot to {snapshot_file}",
            extra={
                "users": len(payload["users"]),
                "products": len(payload["products"]),
                "interactions": len(payload["interactions"]),
            },
        )
        return snapshot_file

    @classmethod
    def load_snapshot(
        cls, model_dir: str, filename: str = SNAPSHOT_FILENAME
    ) -> "InMemoryStore":
        """Rebuild a store from a snapshot written by save_snapshot.

        Raises:
            FileNotFoundError: If the snapshot file does not exist.
            ValueError: If the snapshot was written by an unknown version.
        """
        snapshot_file = Path(model_dir) / filename
        if not snapshot_file.exists():
            raise FileNotFoundError(f"Store snapshot not found: {snapshot_file}")

        payload = joblib.load(snapshot_file)
        version = payload.get("version")
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported snapshot version: {version}")

        store = cls()
        for raw in payload["users"]:
            store.save_user(User.model_validate(raw))
        for raw in payload["products"]:
            store.save_product(Product.model_validate(raw))
        for raw in payload["interactions"]:
            store.save_interaction(Interaction.model_validate(raw))

        logger.info(
            f"Loaded store snapshot from {snapshot_file}",
            extra={
                "users": len(payload["users"]),
                "products": len(payload["products"]),
                "interactions": len(payload["interactions"]),
            },
        )
        return store


def snapshot_exists(model_dir: str, filename: str = SNAPSHOT_FILENAME) -> bool:
    """Check whether a store snapshot exists in model_dir."""
    return (Path(model_dir) / filename).exists()
