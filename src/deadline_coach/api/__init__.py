"""HTTP API for Deadline Coach."""
