from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..core.constants import ENROLLMENT_REQUESTS_KEY, FACULTY_REQUEST_KEY
from ..ephemeral.store import EphemeralStore
from .model import CollaborationRequest, EnrollmentRequest

logger = logging.getLogger(__name__)

_ENROLLMENT_PREFIX = ENROLLMENT_REQUESTS_KEY.split("{", 1)[0]


class RequestQueue:
    """Staging area for approval workflows.

    Enrollment requests live in ``enrollment_requests:{subject_id}`` (hash keyed
    by student email); collaboration requests in ``faculty_request:{email}``
    (set of JSON blobs). Neither key carries a TTL. Malformed payloads are
    logged and skipped rather than surfaced to callers.
    """

    def __init__(self, store: EphemeralStore):
        self._store = store

    @staticmethod
    def enrollment_key(subject_id: str) -> str:
        return ENROLLMENT_REQUESTS_KEY.format(subject_id=subject_id)

    @staticmethod
    def collaboration_key(faculty_email: str) -> str:
        return FACULTY_REQUEST_KEY.format(email=faculty_email)

    # -------- enrollment --------
    def stage_enrollment(self, subject_id: str, req: EnrollmentRequest) -> None:
        self._store.hset(self.enrollment_key(subject_id), req.email, req.to_json())

    def has_enrollment(self, subject_id: str, student_email: str) -> bool:
        return self._store.hexists(self.enrollment_key(subject_id), student_email)

    def list_enrollments(self, subject_id: str) -> List[EnrollmentRequest]:
        out: List[EnrollmentRequest] = []
        for student_email, raw in self._store.hgetall(self.enrollment_key(subject_id)).items():
            try:
                out.append(EnrollmentRequest.from_json(raw))
            except (ValueError, KeyError, TypeError):
                logger.warning("Skipping malformed enrollment request: subject=%s student=%s", subject_id, student_email)
        return out

    def staged_enrollment_emails(self, subject_id: str) -> List[str]:
        """Every staged student email, including ones whose payload is malformed."""
        return list(self._store.hgetall(self.enrollment_key(subject_id)).keys())

    def remove_enrollment(self, subject_id: str, student_email: str) -> bool:
        return self._store.hdel(self.enrollment_key(subject_id), student_email) > 0

    def subjects_with_enrollment_from(self, student_email: str) -> List[str]:
        subject_ids: List[str] = []
        for key in self._store.keys(_ENROLLMENT_PREFIX + "*"):
            if self._store.hexists(key, student_email):
                subject_ids.append(key[len(_ENROLLMENT_PREFIX):])
        return sorted(subject_ids)

    # -------- collaboration --------
    def stage_collaboration(self, faculty_email: str, req: CollaborationRequest) -> bool:
        return self._store.sadd(self.collaboration_key(faculty_email), req.to_json()) > 0

    def list_collaborations(self, faculty_email: str) -> List[Tuple[str, CollaborationRequest]]:
        """``(raw blob, parsed request)`` pairs; the raw blob is the set member."""
        out: List[Tuple[str, CollaborationRequest]] = []
        for raw in self._store.smembers(self.collaboration_key(faculty_email)):
            try:
                out.append((raw, CollaborationRequest.from_json(raw)))
            except (ValueError, TypeError):
                logger.warning("Skipping malformed collaboration request for %s", faculty_email)
        return out

    def find_collaboration(self, faculty_email: str, subject_id: str) -> Optional[Tuple[str, CollaborationRequest]]:
        for raw, req in self.list_collaborations(faculty_email):
            if req.subjectID == subject_id:
                return raw, req
        return None

    def remove_collaboration(self, faculty_email: str, raw: str) -> bool:
        return self._store.srem(self.collaboration_key(faculty_email), raw) > 0
