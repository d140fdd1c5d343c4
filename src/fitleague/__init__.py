"""Submission scoring and validation service for fitness leagues."""

__version__ = "0.1.0"
