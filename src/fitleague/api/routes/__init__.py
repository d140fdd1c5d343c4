"""API route modules."""

from . import activities, cron, entries, submissions

__all__ = ["activities", "cron", "entries", "submissions"]
