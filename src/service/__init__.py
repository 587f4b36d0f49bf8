"""Service layer for SwipeRec.

This module exposes the engine's operations to outer layers: recording and
recategorizing swipes, recommending products, reading interaction history
and importing catalog records. It owns persistence calls, structured
logging setup and in-process metrics.
"""
