"""RE:MIND - reminders, events and voice capture.

This package provides the HTTP API, the natural-language voice capture
pipeline, notification delivery, billing integration and the offline sync
client for the RE:MIND reminder service.
"""

__version__ = "0.1.0"
__author__ = "Trickl"

from remind.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__", "__author__"]
