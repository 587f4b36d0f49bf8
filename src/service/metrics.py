"""Metrics service for tracking engine activity.

Singleton service to track recommendation latency and interaction outcomes.
"""

import threading
from collections import Counter
from typing import Dict


class MetricsService:
    """Singleton service for tracking engine metrics.

    Thread-safe counters for recommendation calls and swipe outcomes.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        """Create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(MetricsService, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize metrics counters."""
        if self._initialized:
            return

        self._lock = threading.Lock()
        self._reset_counters()
        self._initialized = True

    def _reset_counters(self) -> None:
        self._recommendation_count = 0
        self._fallback_count = 0
        self._total_latency_ms = 0.0
        self._min_latency_ms = float('inf')
        self._max_latency_ms = 0.0
        self._interactions = Counter()

    def record_recommendation(self, latency_ms: float, fallback: bool = False) -> None:
        """Record a recommendation call with its latency.

        Args:
            latency_ms: Latency in milliseconds
            fallback: Whether the newest-first fallback was served
        """
        with self._lock:
            self._recommendation_count += 1
            if fallback:
                self._fallback_count += 1
            self._total_latency_ms += latency_ms

            if latency_ms < self._min_latency_ms:
                self._min_latency_ms = latency_ms

            if latency_ms > self._max_latency_ms:
                self._max_latency_ms = latency_ms

    def record_interaction(self, status: str) -> None:
        """Count one record/recategorize call by its outcome status."""
        with self._lock:
            self._interactions[status] += 1

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary with metrics including:
            - recommendation_count: Total number of recommendation calls
            - fallback_count: Calls served by the newest-first fallback
            - average_latency_ms: Average latency in milliseconds
            - min_latency_ms: Minimum latency observed
            - max_latency_ms: Maximum latency observed
            - interactions: Outcome status -> count
        """
        with self._lock:
            avg_latency = (
                self._total_latency_ms / self._recommendation_count
                if self._recommendation_count > 0
                else 0.0
            )

            return {
                "recommendation_count": self._recommendation_count,
                "fallback_count": self._fallback_count,
                "average_latency_ms": round(avg_latency, 2),
                "min_latency_ms": round(self._min_latency_ms, 2) if self._min_latency_ms != float('inf') else 0.0,
                "max_latency_ms": round(self._max_latency_ms, 2),
                "interactions": dict(self._interactions),
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._reset_counters()


# Global singleton instance
metrics_service = MetricsService()
