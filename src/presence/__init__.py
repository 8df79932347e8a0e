"""
Presence tracking for connected clients.
"""

from .tracker import PresenceTracker, PresenceSnapshot, generate_user_id

__all__ = ["PresenceTracker", "PresenceSnapshot", "generate_user_id"]
