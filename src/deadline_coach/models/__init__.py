# src/deadline_coach/models/__init__.py
"""SQLAlchemy models for the Deadline Coach application."""

from .deadline import DeadlineRecord

__all__ = ["DeadlineRecord"]
