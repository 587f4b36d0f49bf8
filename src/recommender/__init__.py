"""Preference learning and ranking for SwipeRec.

This module contains the vector helpers, the online preference update
rule, the interaction ledger keeping swipes, counters and history in step,
and the pipeline ranking catalog products against a user's preferences.
"""
