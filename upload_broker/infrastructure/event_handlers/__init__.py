"""Event handlers subscribed to the broker's event publisher."""

from .logging_handler import LoggingEventHandler

__all__ = ["LoggingEventHandler"]
