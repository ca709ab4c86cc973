"""Centralized constants for the mneme review engine.

All magic numbers and scheduling defaults live here so every layer
imports from a single source of truth.
"""

from datetime import timedelta

# ---------- Queue Builder ----------
LEARN_AHEAD_MINUTES = 20
DEFAULT_NEW_CARDS_PER_DAY = 20
DEFAULT_REVIEWS_PER_DAY = 200

# ---------- Requeue ----------
REQUEUE_HORIZON = timedelta(minutes=10)

# ---------- Day Boundary ----------
DEFAULT_DAY_START_HOUR = 4

# ---------- Statistics ----------
MATURE_INTERVAL_DAYS = 21
WEAK_STABILITY_DAYS = 7.0
SECONDS_PER_DAY = 86400

# ---------- Scheduler ----------
DEFAULT_DESIRED_RETENTION = 0.9
