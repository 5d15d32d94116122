"""Activity logging package."""

from cashbook.activity.logger import ActivityLogger, configure_logging

__all__ = ["ActivityLogger", "configure_logging"]
