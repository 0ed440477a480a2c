# src/deadline_coach/services/__init__.py
"""Business logic services for the Deadline Coach application."""

from .controller import CountdownController, LifecycleState
from .deadline_store import DeadlineStore, StoreError
from .generation import ContentGenerationClient, GeneratedContent, GenerationError
from .registry import CountdownRegistry

__all__ = [
    "ContentGenerationClient",
    "CountdownController",
    "CountdownRegistry",
    "DeadlineStore",
    "GeneratedContent",
    "GenerationError",
    "LifecycleState",
    "StoreError",
]
