"""Vector helpers for preference learning and scoring."""

from typing import List, Sequence

import numpy as np

Vector = Sequence[float]


def cosine_similarity(a: Vector, b: Vector) -> float:
    """Compute cosine similarity between two vectors.

    Returns 0.0 when either vector is empty, the lengths differ or either
    norm is zero.

    Example:
        >>> cosine_similarity([1.0, 0.0], [1.0, 0.0])
        1.0
        >>> cosine_similarity([], [1.0, 2.0])
        0.0
    """
    if len(a) == 0 or len(b) == 0 or len(a) != len(b):
        return 0.0

    a_arr = np.asarray(a, dtype=np.float64)
    b_arr = np.asarray(b, dtype=np.float64)
    norm_product = np.linalg.norm(a_arr) * np.linalg.norm(b_arr)
    if norm_product == 0:
        return 0.0

    similarity = float(np.dot(a_arr, b_arr) / norm_product)
    # Rounding can push parallel vectors slightly past the bounds
    return max(-1.0, min(1.0, similarity))


def zero_vector(dimension: int) -> List[float]:
    """Create an all-zero vector of the given length."""
    if dimension < 0:
        raise ValueError(f"dimension must be non-negative, got {dimension}")
    return [0.0] * dimension
