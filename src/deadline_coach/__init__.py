"""Deadline Coach: countdown controller with generated coaching content."""

__version__ = "0.1.0"
