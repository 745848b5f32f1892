from __future__ import annotations

from dataclasses import asdict

from flask import Flask, jsonify, request

from ..common.http import bearer_required, ensure_actor, json_body
from ..core.enums import CollaborationAction, Role
from ..core.exceptions import ValidationError
from ..container import Container

_PAST_TENSE = {"approve": "approved", "reject": "rejected"}


def register(app: Flask, container: Container) -> None:
    faculty_required = bearer_required(container.token_service, role=Role.FACULTY)
    student_required = bearer_required(container.token_service, role=Role.STUDENT)

    # -------- enrollment (student side) --------
    @app.route("/student/enroll", methods=["POST"], endpoint="request_enrollment")
    @student_required
    def request_enrollment():
        data = json_body()
        ensure_actor(data.get("studentEmail"))
        container.enrollment_service.request_enrollment(
            subject_id=data.get("subjectID"), student_email=data.get("studentEmail")
        )
        return jsonify({"message": "Enrollment request submitted"})

    @app.route("/student/pending-enrollments", methods=["POST"], endpoint="pending_enrollments")
    @student_required
    def pending_enrollments():
        student_email = json_body().get("studentEmail")
        ensure_actor(student_email)
        pending = container.enrollment_service.pending_enrollments_for_student(student_email)
        return jsonify({"pendingSubjects": pending})

    # -------- enrollment (faculty side) --------
    @app.route("/faculty/new-requests", methods=["GET"], endpoint="new_requests")
    @faculty_required
    def new_requests():
        faculty_email = request.args.get("facultyEmail", "")
        ensure_actor(faculty_email)
        return jsonify(container.enrollment_service.has_new_requests(faculty_email))

    @app.route("/faculty/enrollment-requests", methods=["GET"], endpoint="enrollment_requests")
    @faculty_required
    def enrollment_requests():
        faculty_email = request.args.get("facultyEmail", "")
        ensure_actor(faculty_email)
        grouped = container.enrollment_service.list_enrollment_requests_for_faculty(faculty_email)
        return jsonify({"enrollmentRequests": grouped})

    @app.route("/faculty/enroll-student", methods=["POST"], endpoint="enroll_student")
    @faculty_required
    def enroll_student():
        data = json_body()
        ensure_actor(data.get("facultyEmail"))
        action = str(data.get("action") or "")
        container.enrollment_service.resolve_enrollment(
            faculty_email=data.get("facultyEmail"),
            subject_id=data.get("subjectID"),
            student_email=data.get("studentEmail"),
            action=action,
        )
        return jsonify({"message": f"Enrollment {_PAST_TENSE[action.strip().lower()]} successfully"})

    @app.route("/faculty/bulk-enroll", methods=["POST"], endpoint="bulk_enroll")
    @faculty_required
    def bulk_enroll():
        data = json_body()
        ensure_actor(data.get("facultyEmail"))
        action = str(data.get("action") or "")
        count = container.enrollment_service.bulk_resolve(
            faculty_email=data.get("facultyEmail"), subject_id=data.get("subjectID"), action=action
        )
        return jsonify({"message": f"All students {_PAST_TENSE[action.strip().lower()]} successfully", "count": count})

    # -------- collaboration --------
    @app.route("/faculty/add-faculty", methods=["POST"], endpoint="add_faculty")
    @faculty_required
    def add_faculty():
        data = json_body()
        ensure_actor(data.get("requestedByEmail"))
        container.collaboration_service.request_collaboration(
            subject_id=data.get("subjectID"),
            target_email=data.get("email"),
            requested_by_email=data.get("requestedByEmail"),
        )
        return jsonify({"message": "Request sent to faculty for approval"})

    @app.route("/faculty/pending-requests", methods=["GET"], endpoint="pending_requests")
    @faculty_required
    def pending_requests():
        email = request.args.get("email", "")
        if not email:
            raise ValidationError("Faculty email is required")
        ensure_actor(email)
        pending = container.collaboration_service.list_collaboration_requests(email)
        if not pending:
            return jsonify({"message": "No pending requests"})
        return jsonify({"pendingRequests": [asdict(r) for r in pending]})

    @app.route("/faculty/respond-request", methods=["POST"], endpoint="respond_request")
    @faculty_required
    def respond_request():
        data = json_body()
        ensure_actor(data.get("email"))
        outcome = container.collaboration_service.respond_collaboration(
            subject_id=data.get("subjectID"), target_email=data.get("email"), action=data.get("action")
        )
        message = "Faculty added successfully" if outcome is CollaborationAction.ACCEPT else "Request rejected"
        return jsonify({"message": message})
