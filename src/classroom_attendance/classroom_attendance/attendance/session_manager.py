from __future__ import annotations

import json
import logging
from typing import Any, List

from ..core.constants import ATTENDANCE_KEY, SESSION_TTL_SECONDS
from ..core.exceptions import NotFoundError
from ..ephemeral.store import EphemeralStore

logger = logging.getLogger(__name__)


class AttendanceSessionManager:
    """Ephemeral attendance windows, one hash per subject.

    ``attendance:{subject_id}`` maps faculty email -> location JSON. The TTL
    belongs to the whole key, so any write by any actor re-arms the window for
    everyone; a key that expired, was never written, or had its last actor
    removed all read as "closed". Expiry is left entirely to the store.
    """

    def __init__(self, store: EphemeralStore, *, ttl_seconds: int = SESSION_TTL_SECONDS):
        self._store = store
        self._ttl = int(ttl_seconds)

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    @staticmethod
    def _key(subject_id: str) -> str:
        return ATTENDANCE_KEY.format(subject_id=subject_id)

    def _write(self, subject_id: str, actor_email: str, location: Any) -> None:
        key = self._key(subject_id)
        self._store.hset_with_ttl(key, actor_email, json.dumps(location), self._ttl)

    def start_session(self, subject_id: str, actor_email: str, location: Any) -> None:
        """Open (or re-open) the window and record the actor's location."""
        self._write(subject_id, actor_email, location)
        logger.info("Attendance session open: subject=%s actor=%s ttl=%ss", subject_id, actor_email, self._ttl)

    def update_location(self, subject_id: str, actor_email: str, location: Any) -> None:
        if not self._store.hexists(self._key(subject_id), actor_email):
            raise NotFoundError("Email not found for subject")
        self._write(subject_id, actor_email, location)

    def stop_session(self, subject_id: str, actor_email: str) -> bool:
        """Remove one actor; returns whether the actor was broadcasting."""
        removed = self._store.hdel(self._key(subject_id), actor_email) > 0
        logger.info("Attendance session stop: subject=%s actor=%s removed=%s", subject_id, actor_email, removed)
        return removed

    def get_active_location(self, subject_id: str) -> Any:
        """Location of whichever actor the store enumerates first.

        With several faculty broadcasting at once the choice is arbitrary; no
        actor is preferred.
        """
        entries = self._store.hgetall(self._key(subject_id))
        if not entries:
            raise NotFoundError("Attendance not started yet")
        first_actor = next(iter(entries))
        return json.loads(entries[first_actor])

    def list_active_actors(self, subject_id: str) -> List[str]:
        return list(self._store.hgetall(self._key(subject_id)).keys())

    def is_open(self, subject_id: str) -> bool:
        return bool(self._store.hgetall(self._key(subject_id)))
