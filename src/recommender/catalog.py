"""Product catalog loading and synthetic catalog generation.

Products arrive from an upstream catalog with embeddings already computed.
Records are upserted by their upstream id; records missing required fields
or carrying unknown categories/genders are skipped.
"""

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List

import numpy as np
import pandas as pd
import pydantic

from src.recommender.models import Category, Gender, Product, utcnow
from src.recommender.store import RecommendationStore

# Configure module logger
logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("original_id", "category", "gender", "embedding", "name", "image_url")
DEFAULT_NUM_PRODUCTS = 50
DEFAULT_EMBEDDING_DIM = 50
DEFAULT_RANDOM_SEED = 42

# Sampling pool giving roughly 40% clothing, 30% footwear, 30% accessories
_CATEGORY_POOL = (
    [Category.CLOTHING] * 4 + [Category.FOOTWEAR] * 3 + [Category.ACCESSORIES] * 3
)


@dataclass
class ImportSummary:
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    product_ids: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return self.imported + self.updated


def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and np.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, tuple, np.ndarray)) and len(value) == 0:
        return True
    return False


def _product_fields(record: Dict) -> Dict:
    description = record.get("description")
    price = record.get("price")
    return {
        "original_id": str(record["original_id"]),
        "category": record["category"],
        "gender": record["gender"],
        "embedding": [float(x) for x in record["embedding"]],
        "name": record["name"],
        "description": "" if _is_missing(description) else description,
        "image_url": record["image_url"],
        "price": 0.0 if _is_missing(price) else float(price),
    }


def import_products(
    store: RecommendationStore, records: Iterable[Dict]
) -> ImportSummary:
    """Upsert product records into the store.

    Existing products (matched on original_id) keep their id, interaction
    counts and creation time; everything else is replaced.

    Args:
        store: Store to write products into.
        records: Dicts with at least the REQUIRED_FIELDS keys.

    Returns:
        ImportSummary with new, updated and skipped counts.
    """
    summary = ImportSummary()

    for record in records:
        missing = [name for name in REQUIRED_FIELDS if _is_missing(record.get(name))]
        if missing:
            logger.warning(
                "Skipping product record with missing fields",
                extra={"original_id": record.get("original_id"), "missing": missing},
            )
            summary.skipped += 1
            continue

        existing = store.find_product_by_original_id(str(record["original_id"]))

        try:
            fields = _product_fields(record)
            if existing is not None:
                product = Product.model_validate(
                    {
                        **existing.model_dump(),
                        **fields,
                        "updated_at": utcnow(),
                    }
                )
            else:
                product = Product(id=uuid.uuid4().hex, **fields)
        except (pydantic.ValidationError, TypeError, ValueError) as e:
            logger.warning(
                "Skipping invalid product record",
                extra={"original_id": record.get("original_id"), "error": str(e)},
            )
            summary.skipped += 1
            continue

        store.save_product(product)
        summary.product_ids.append(product.id)
        if existing is not None:
            summary.updated += 1
        else:
            summary.imported += 1

    logger.info(
        f"Imported {summary.count} products",
        extra={
            "imported": summary.imported,
            "updated": summary.updated,
            "skipped": summary.skipped,
        },
    )
    return summary


def load_catalog_records(json_path: str) -> List[Dict]:
    """Read product records from a JSON array file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is empty or lacks a required column.
    """
    catalog_file = Path(json_path)
    if not catalog_file.exists():
        raise FileNotFoundError(f"Catalog file not found: {json_path}")

    logger.info(f"Loading catalog from {json_path}")
    df = pd.read_json(catalog_file, orient="records", dtype=False)

    if df.empty:
        raise ValueError("Cannot import an empty catalog")

    missing = set(REQUIRED_FIELDS) - set(df.columns)
    if missing:
        raise ValueError(f"Catalog missing required columns: {missing}")

    logger.info(f"Loaded {len(df)} product records")
    return df.to_dict(orient="records")


def generate_sample_catalog(
    num_products: int = DEFAULT_NUM_PRODUCTS,
    embedding_dim: int = DEFAULT_EMBEDDING_DIM,
    random_seed: int = DEFAULT_RANDOM_SEED,
) -> pd.DataFrame:
    """Make a synthetic catalog with random unit-norm embeddings.

    Good for local runs when no upstream catalog is available.
    """
    if num_products <= 0 or embedding_dim <= 0:
        raise ValueError("num_products and embedding_dim must be positive")

    logger.info(
        f"Generating sample catalog: {num_products} products, dim={embedding_dim}, "
        f"seed={random_seed}"
    )

    rng = np.random.RandomState(random_seed)
    embeddings = rng.randn(num_products, embedding_dim)
    embeddings = embeddings / np.linalg.norm(embeddings, axis=1, keepdims=True)
    genders = list(Gender)

    rows = []
    for i in range(num_products):
        category = _CATEGORY_POOL[rng.randint(len(_CATEGORY_POOL))]
        gender = genders[rng.randint(len(genders))]
        n = i + 1
        rows.append({
            "original_id": f"original_{n}",
            "category": category.value,
            "gender": gender.value,
            "embedding": embeddings[i].tolist(),
            "name": f"Sample {category.value} {n}",
            "description": f"This is a sample {category.value} product for {gender.value}",
            "image_url": f"https://example.com/images/{category.value}{n}.jpg",
            "price": float(rng.randint(20, 120)),
        })

    return pd.DataFrame(rows)


def save_catalog(df: pd.DataFrame, output_path: str) -> Path:
    """Write a catalog DataFrame as a JSON array of records."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_json(path, orient="records", indent=2)
    logger.info(f"Saved {len(df)} catalog records to {path}")
    return path
