# chatsync/core/__init__.py
"""
chatsync Core Module
Central location for shared constants and metadata
"""

from chatsync import __version__, __description__, __author__

from chatsync.core.app_state import AppState, get_start_time

__all__ = [
    "__version__",
    "__description__",
    "__author__",
    "AppState",
    "get_start_time"
]
