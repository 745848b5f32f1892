from __future__ import annotations

import logging
from typing import Dict, List

from ..common.datetime_utils import epoch_millis
from ..common.validators import require_non_empty
from ..core.enums import CollaborationAction, EnrollmentAction, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..subjects.model import Subject
from ..subjects.repository import SubjectRepository
from ..users.model import User
from ..users.repository import UserRepository
from .model import CollaborationRequest, EnrollmentRequest
from .queue import RequestQueue

logger = logging.getLogger(__name__)


def _parse_enrollment_action(value: str) -> EnrollmentAction:
    try:
        return EnrollmentAction((value or "").strip().lower())
    except ValueError:
        raise ValidationError("Action must be approve or reject")


def _parse_collaboration_action(value: str) -> CollaborationAction:
    try:
        return CollaborationAction((value or "").strip().lower())
    except ValueError:
        raise ValidationError("Action must be accept or reject")


class EnrollmentService:
    def __init__(self, queue: RequestQueue, subjects: SubjectRepository, users: UserRepository):
        self._queue = queue
        self._subjects = subjects
        self._users = users

    def _owned_subject(self, faculty_email: str, subject_id: str) -> Subject:
        faculty = self._users.get_by_email(faculty_email or "", role=Role.FACULTY)
        if not faculty:
            raise NotFoundError("Faculty not found")
        subject = self._subjects.get(subject_id)
        if not subject or not subject.has_faculty(faculty.user_id):
            raise NotFoundError("Subject not found or unauthorized")
        return subject

    def _approve(self, subject: Subject, student: User) -> None:
        # Roster insert also backfills an absent entry into every existing record.
        if self._subjects.enroll_student(subject.subject_id, student.user_id):
            logger.info("Enrolled %s into %s", student.email, subject.subject_id)

    def request_enrollment(self, *, subject_id: str, student_email: str) -> None:
        subject_id = require_non_empty(subject_id, "SubjectID")
        student_email = require_non_empty(student_email, "Student email")

        subject = self._subjects.get(subject_id)
        if not subject:
            raise NotFoundError("Subject not found")
        student = self._users.get_by_email(student_email, role=Role.STUDENT)
        if not student:
            raise NotFoundError("Student not found")
        if subject.has_student(student.user_id):
            raise ConflictError("Student is already enrolled in this subject")
        if self._queue.has_enrollment(subject.subject_id, student.email):
            raise ConflictError("Enrollment request already submitted")

        self._queue.stage_enrollment(
            subject.subject_id,
            EnrollmentRequest(
                email=student.email,
                name=student.name,
                scholarID=student.registration_number,
                timestamp=epoch_millis(),
            ),
        )
        logger.info("Enrollment request staged: subject=%s student=%s", subject.subject_id, student.email)

    def list_enrollment_requests(self, subject_id: str) -> List[EnrollmentRequest]:
        return self._queue.list_enrollments(subject_id)

    def list_enrollment_requests_for_faculty(self, faculty_email: str) -> Dict[str, List[dict]]:
        faculty = self._users.get_by_email(faculty_email or "", role=Role.FACULTY)
        if not faculty:
            raise NotFoundError("Faculty not found")
        subjects = self._subjects.list_for_faculty(faculty.user_id)
        if not subjects:
            raise NotFoundError("No subjects found for this faculty")
        return {
            s.subject_id: [
                {"studentEmail": r.email, "name": r.name, "scholarID": r.scholarID, "timestamp": r.timestamp}
                for r in self._queue.list_enrollments(s.subject_id)
            ]
            for s in subjects
        }

    def pending_enrollments_for_student(self, student_email: str) -> List[dict]:
        student_email = require_non_empty(student_email, "Student email")
        if not self._users.get_by_email(student_email):
            raise NotFoundError("Student not found")
        pending: List[dict] = []
        for subject_id in self._queue.subjects_with_enrollment_from(student_email):
            subject = self._subjects.get(subject_id)
            if subject:
                pending.append(
                    {
                        "subjectID": subject.subject_id,
                        "subjectCode": subject.subject_code,
                        "subjectName": subject.subject_name,
                    }
                )
        return pending

    def resolve_enrollment(self, *, faculty_email: str, subject_id: str, student_email: str, action: str) -> bool:
        """Approve or reject one staged request; returns whether it was staged.

        Approval needs a staged request from an existing student. Rejection only
        clears the staged entry, so requests from deleted accounts can be dropped.
        """
        parsed = _parse_enrollment_action(action)
        subject = self._owned_subject(faculty_email, subject_id)
        student_email = require_non_empty(student_email, "Student email")

        if parsed is EnrollmentAction.APPROVE:
            if not self._queue.has_enrollment(subject.subject_id, student_email):
                raise NotFoundError("Enrollment request not found")
            student = self._users.get_by_email(student_email, role=Role.STUDENT)
            if not student:
                raise NotFoundError("Student not found")
            self._approve(subject, student)
        existed = self._queue.remove_enrollment(subject.subject_id, student_email)
        logger.info(
            "Enrollment %s: subject=%s student=%s staged=%s", parsed.value, subject.subject_id, student_email, existed
        )
        return existed

    def bulk_resolve(self, *, faculty_email: str, subject_id: str, action: str) -> int:
        parsed = _parse_enrollment_action(action)
        subject = self._owned_subject(faculty_email, subject_id)

        resolved = 0
        if parsed is EnrollmentAction.REJECT:
            for student_email in self._queue.staged_enrollment_emails(subject.subject_id):
                if self._queue.remove_enrollment(subject.subject_id, student_email):
                    resolved += 1
        else:
            for req in self._queue.list_enrollments(subject.subject_id):
                student = self._users.get_by_email(req.email, role=Role.STUDENT)
                if not student:
                    # left staged until someone rejects it
                    continue
                self._approve(subject, student)
                self._queue.remove_enrollment(subject.subject_id, req.email)
                resolved += 1
        logger.info("Bulk enrollment %s: subject=%s count=%s", parsed.value, subject.subject_id, resolved)
        return resolved

    def has_new_requests(self, faculty_email: str) -> Dict[str, bool]:
        faculty = self._users.get_by_email(faculty_email or "", role=Role.FACULTY)
        if not faculty:
            raise NotFoundError("Faculty not found")
        enrollment = any(self._queue.list_enrollments(s.subject_id) for s in self._subjects.list_for_faculty(faculty.user_id))
        collab = bool(self._queue.list_collaborations(faculty.email))
        return {"enrollmentRequest": enrollment, "collabRequest": collab}


class CollaborationService:
    def __init__(self, queue: RequestQueue, subjects: SubjectRepository, users: UserRepository):
        self._queue = queue
        self._subjects = subjects
        self._users = users

    def request_collaboration(self, *, subject_id: str, target_email: str, requested_by_email: str) -> None:
        if not subject_id or not target_email or not requested_by_email:
            raise ValidationError("Subject ID, Faculty Email, and Requester Email are required")

        target = self._users.get_by_email(target_email, role=Role.FACULTY)
        if not target:
            raise NotFoundError("Faculty not found")
        subject = self._subjects.get(subject_id)
        if not subject:
            raise NotFoundError("Subject not found")
        requester = self._users.get_by_email(requested_by_email, role=Role.FACULTY)
        if not requester:
            raise NotFoundError("Requesting faculty not found")
        if not subject.has_faculty(requester.user_id):
            raise AuthorizationError("Only assigned faculty can invite collaborators")
        if subject.has_faculty(target.user_id):
            raise ConflictError("Faculty already assigned to this subject")

        self._queue.stage_collaboration(
            target.email,
            CollaborationRequest(
                subjectID=subject.subject_id,
                email=requester.email,
                name=requester.name,
                department=subject.department,
                subjectName=subject.subject_name,
                section=subject.section,
                programme=subject.programme,
                semester=subject.semester,
            ),
        )
        logger.info("Collaboration request staged: subject=%s target=%s by=%s", subject.subject_id, target.email, requester.email)

    def list_collaboration_requests(self, target_email: str) -> List[CollaborationRequest]:
        target_email = require_non_empty(target_email, "Faculty email")
        return [req for _, req in self._queue.list_collaborations(target_email)]

    def respond_collaboration(self, *, subject_id: str, target_email: str, action: str) -> CollaborationAction:
        if not subject_id or not target_email or not action:
            raise ValidationError("Subject ID, Faculty Email, and Action are required")
        parsed = _parse_collaboration_action(action)

        found = self._queue.find_collaboration(target_email, subject_id)
        if not found:
            raise NotFoundError("Request not found")
        raw, _ = found

        if parsed is CollaborationAction.ACCEPT:
            faculty = self._users.get_by_email(target_email, role=Role.FACULTY)
            if not faculty:
                raise NotFoundError("Faculty not found")
            subject = self._subjects.get(subject_id)
            if not subject:
                raise NotFoundError("Subject not found")
            self._subjects.add_faculty(subject.subject_id, faculty.user_id)

        self._queue.remove_collaboration(target_email, raw)
        logger.info("Collaboration %s: subject=%s target=%s", parsed.value, subject_id, target_email)
        return parsed
