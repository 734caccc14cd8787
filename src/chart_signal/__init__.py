"""Top-level package for the AI chart analysis assistant."""

__all__ = [
    "ai",
    "core",
    "monitoring",
    "session",
    "storage",
]
