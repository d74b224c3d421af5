"""AAI hooks - policy gates for AI coding-assistant hook events."""

__version__ = "0.3.0"
