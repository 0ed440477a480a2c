# src/deadline_coach/schemas/__init__.py
"""
Pydantic schemas for API request/response models.
"""

from .countdown import CountdownResponse, CountdownStart, RemainingTimeResponse

__all__ = ["CountdownResponse", "CountdownStart", "RemainingTimeResponse"]
