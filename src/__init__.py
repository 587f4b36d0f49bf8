"""SwipeRec: swipe-driven product recommendation engine.

This package learns per-category preference vectors from swipe interactions
(favorite, like, dislike, neutral) and ranks unseen catalog products by
embedding similarity to those vectors.

Modules:
    recommender: preference learning, interaction ledger and ranking
    service: operations exposed to outer layers, logging and metrics
"""

__version__ = "0.1.0"
