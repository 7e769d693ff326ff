"""
File-system watching
"""
from .observer import WatchEventBridge, start_watchers

__all__ = ["WatchEventBridge", "start_watchers"]
