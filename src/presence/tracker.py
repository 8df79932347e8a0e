"""
In-memory presence tracking for connected clients.

Clients register with /connect, keep themselves alive with /heartbeat and
leave with /disconnect. Ids are opaque strings; the tracker only cares whether
an id is currently active.

Expiry is lazy: every operation first drops ids whose last heartbeat is older
than ``ttl_seconds``. With ``ttl_seconds <= 0`` clients stay active until they
disconnect explicitly.
"""

from __future__ import annotations

import logging
import random
import string
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple


_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_user_id(now: Optional[float] = None) -> str:
    """Return an id of the form user_<epoch-ms>_<9 base36 chars>."""
    ts_ms = int((now if now is not None else time.time()) * 1000)
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"user_{ts_ms}_{suffix}"


@dataclass(frozen=True)
class PresenceSnapshot:
    """Point-in-time view of the presence counters."""
    active_count: int
    peak_users: int
    total_connections: int
    total_detections: int
    uptime_seconds: float


class PresenceTracker:
    """
    Tracks active client ids plus aggregate counters.

    Invariants:
    - active_count <= peak_users
    - total_connections >= active_count
    - counters only grow; only active membership shrinks
    """

    def __init__(
        self,
        ttl_seconds: float = 120.0,
        clock: Callable[[], float] = time.time,
        start_time: Optional[float] = None,
    ):
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._last_seen: Dict[str, float] = {}
        self.start_time = start_time if start_time is not None else clock()
        self.total_connections = 0
        self.peak_users = 0
        self.total_detections = 0

    # ------------------------------------------------------------------
    # Internal helpers (caller holds the lock)
    # ------------------------------------------------------------------

    def _expire(self, now: float) -> None:
        if self.ttl_seconds <= 0:
            return
        cutoff = now - self.ttl_seconds
        stale = [uid for uid, seen in self._last_seen.items() if seen < cutoff]
        for uid in stale:
            del self._last_seen[uid]
            logging.debug("User expired after %.0fs without heartbeat: %s", self.ttl_seconds, uid)

    def _add(self, user_id: str, now: float) -> None:
        self._last_seen[user_id] = now
        self.total_connections += 1
        if len(self._last_seen) > self.peak_users:
            self.peak_users = len(self._last_seen)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def connect(self, user_id: Optional[str] = None) -> Tuple[str, int]:
        """
        Register a client. Generates an id when none is given.

        Duplicate connects for an already-active id still count as a new
        connection.
        """
        with self._lock:
            now = self._clock()
            self._expire(now)
            if not user_id:
                user_id = generate_user_id(now)
                while user_id in self._last_seen:
                    user_id = generate_user_id(now)
            self._add(user_id, now)
            active = len(self._last_seen)
        logging.info("User connected: %s (%d active)", user_id, active)
        return user_id, active

    def disconnect(self, user_id: Optional[str]) -> int:
        """Remove a client if present. Unknown or missing ids are a no-op."""
        with self._lock:
            self._expire(self._clock())
            removed = bool(user_id) and self._last_seen.pop(user_id, None) is not None
            active = len(self._last_seen)
        if removed:
            logging.info("User disconnected: %s (%d active)", user_id, active)
        return active

    def heartbeat(self, user_id: Optional[str]) -> int:
        """
        Keep a client alive.

        An inactive id (never seen, disconnected or expired) is revived and
        counted as a new connection; an active id only has its last-seen time
        refreshed.
        """
        with self._lock:
            now = self._clock()
            self._expire(now)
            if user_id:
                if user_id in self._last_seen:
                    self._last_seen[user_id] = now
                else:
                    self._add(user_id, now)
                    logging.info("User revived by heartbeat: %s (%d active)", user_id, len(self._last_seen))
            return len(self._last_seen)

    def record_detection(self) -> None:
        with self._lock:
            self.total_detections += 1

    def is_active(self, user_id: str) -> bool:
        with self._lock:
            self._expire(self._clock())
            return user_id in self._last_seen

    def active_users(self) -> List[str]:
        with self._lock:
            self._expire(self._clock())
            return list(self._last_seen)

    def active_count(self) -> int:
        with self._lock:
            self._expire(self._clock())
            return len(self._last_seen)

    def snapshot(self) -> PresenceSnapshot:
        with self._lock:
            now = self._clock()
            self._expire(now)
            return PresenceSnapshot(
                active_count=len(self._last_seen),
                peak_users=self.peak_users,
                total_connections=self.total_connections,
                total_detections=self.total_detections,
                uptime_seconds=max(0.0, now - self.start_time),
            )
