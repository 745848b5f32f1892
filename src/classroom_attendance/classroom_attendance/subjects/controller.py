from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import bearer_required, current_claims, ensure_actor, json_body
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    auth_required = bearer_required(container.token_service)
    faculty_required = bearer_required(container.token_service, role=Role.FACULTY)
    student_required = bearer_required(container.token_service, role=Role.STUDENT)

    # -------- faculty --------
    @app.route("/faculty/add-subject", methods=["POST"], endpoint="add_subject")
    @faculty_required
    def add_subject():
        data = json_body()
        ensure_actor(data.get("facultyEmail"))
        container.subject_service.add_subject(data)
        return jsonify({"message": "Subject added successfully"}), 201

    @app.route("/faculty/dashboard/<email>", methods=["GET"], endpoint="faculty_dashboard")
    @faculty_required
    def faculty_dashboard(email: str):
        ensure_actor(email)
        return jsonify(container.subject_service.faculty_dashboard(email))

    @app.route("/faculty/attendanceRecord/<subject_id>", methods=["GET"], endpoint="attendance_record")
    @faculty_required
    def attendance_record(subject_id: str):
        return jsonify(container.subject_service.attendance_records(subject_id))

    @app.route("/faculty/archive-subject", methods=["POST"], endpoint="archive_subject")
    @faculty_required
    def archive_subject():
        data = json_body()
        ensure_actor(data.get("email"))
        container.subject_service.archive_subject(subject_id=data.get("subjectID"), email=data.get("email"))
        return jsonify({"message": "Subject archived successfully"})

    @app.route("/faculty/unarchive-subject", methods=["POST"], endpoint="unarchive_subject")
    @faculty_required
    def unarchive_subject():
        data = json_body()
        ensure_actor(data.get("email"))
        container.subject_service.unarchive_subject(subject_id=data.get("subjectID"), email=data.get("email"))
        return jsonify({"message": "Subject unarchived successfully"})

    @app.route("/faculty/get-archived-subjects/<email>", methods=["GET"], endpoint="archived_subjects")
    @faculty_required
    def archived_subjects(email: str):
        ensure_actor(email)
        return jsonify({"archivedSubjects": container.subject_service.list_archived(email)})

    @app.route("/faculty/delete-subject/<subject_id>", methods=["DELETE"], endpoint="delete_subject")
    @faculty_required
    def delete_subject(subject_id: str):
        container.subject_service.delete_archived_subject(subject_id, email=current_claims().email)
        return jsonify({"message": "Subject deleted successfully"})

    # -------- student --------
    @app.route("/student/subjects", methods=["GET"], endpoint="subject_catalog")
    @auth_required
    def subject_catalog():
        return jsonify(container.subject_service.catalog())

    @app.route("/student/unenroll", methods=["POST"], endpoint="unenroll")
    @student_required
    def unenroll():
        data = json_body()
        ensure_actor(data.get("email"))
        container.subject_service.unenroll(subject_id=data.get("subjectID"), email=data.get("email"))
        return jsonify({"message": "Student removed successfully!"})

    @app.route("/student/dashboard/<email>", methods=["GET"], endpoint="student_dashboard")
    @student_required
    def student_dashboard(email: str):
        ensure_actor(email)
        return jsonify(container.subject_service.student_dashboard(email))
