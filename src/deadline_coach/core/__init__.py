"""Core configuration and primitives."""
