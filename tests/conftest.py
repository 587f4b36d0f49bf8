"""Shared fixtures for the SwipeRec tests."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List

import pytest

from src.recommender.models import Category, Gender, Product, User
from src.recommender.store import InMemoryStore
from src.service.metrics import metrics_service

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def make_product() -> Callable[..., Product]:
    """Factory for products; `age` orders created_at (higher is newer)."""

    def _make(
        product_id: str,
        embedding: List[float],
        category: Category = Category.CLOTHING,
        gender: Gender = Gender.UNISEX,
        age: int = 0,
    ) -> Product:
        return Product(
            id=product_id,
            original_id=f"orig-{product_id}",
            category=category,
            gender=gender,
            embedding=embedding,
            name=f"Product {product_id}",
            image_url=f"https://example.com/{product_id}.jpg",
            price=25.0,
            created_at=BASE_TIME + timedelta(minutes=age),
        )

    return _make


@pytest.fixture
def make_user() -> Callable[..., User]:
    def _make(user_id: str = "u1", gender: Gender = Gender.UNISEX) -> User:
        return User(id=user_id, username=user_id, gender=gender)

    return _make


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture(autouse=True)
def reset_metrics():
    """Keep the metrics singleton isolated between tests."""
    metrics_service.reset()
    yield
    metrics_service.reset()


@pytest.fixture
def restore_root_logger():
    """Put back root logger handlers and level replaced by setup_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
