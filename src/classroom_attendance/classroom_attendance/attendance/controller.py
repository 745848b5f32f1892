from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import bearer_required, current_claims, ensure_actor, json_body
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    faculty_required = bearer_required(container.token_service, role=Role.FACULTY)
    student_required = bearer_required(container.token_service, role=Role.STUDENT)

    def _session_fields(data: dict) -> tuple[str, str]:
        subject_id = str(data.get("subjectID") or "").strip()
        email = str(data.get("email") or "").strip()
        if not subject_id or not email:
            raise ValidationError("Invalid data")
        ensure_actor(email)
        return subject_id, email

    # -------- session window --------
    @app.route("/faculty/start-attendance", methods=["POST"], endpoint="start_attendance")
    @faculty_required
    def start_attendance():
        data = json_body()
        subject_id, email = _session_fields(data)
        if data.get("location") is None:
            raise ValidationError("Location is required")
        container.attendance_service.start_attendance(email=email, subject_id=subject_id, location=data["location"])
        return jsonify({"success": True, "message": "Attendance started"})

    @app.route("/faculty/update-location", methods=["POST"], endpoint="update_location")
    @faculty_required
    def update_location():
        data = json_body()
        subject_id, email = _session_fields(data)
        if data.get("location") is None:
            raise ValidationError("Location is required")
        container.attendance_service.update_location(email=email, subject_id=subject_id, location=data["location"])
        return jsonify({"success": True})

    @app.route("/faculty/stop-attendance", methods=["POST"], endpoint="stop_attendance")
    @faculty_required
    def stop_attendance():
        subject_id, email = _session_fields(json_body())
        container.attendance_service.stop_attendance(email=email, subject_id=subject_id)
        return jsonify({"success": True, "message": "Attendance stopped"})

    @app.route("/student/faculty-location/<subject_id>", methods=["GET"], endpoint="faculty_location")
    @student_required
    def faculty_location(subject_id: str):
        location = container.attendance_service.faculty_location(subject_id)
        return jsonify({"success": True, "location": location})

    # -------- ledger --------
    @app.route("/student/mark-attendance", methods=["POST"], endpoint="mark_attendance")
    @student_required
    def mark_attendance():
        data = json_body()
        student_email = str(data.get("studentEmail") or "").strip()
        subject_id = str(data.get("subjectID") or "").strip()
        if not student_email or not subject_id:
            raise ValidationError("Missing required fields")
        ensure_actor(student_email)
        container.attendance_service.mark_attendance(student_email=student_email, subject_id=subject_id)
        return jsonify({"message": "Attendance marked successfully"})

    @app.route("/faculty/get-attendance/<subject_id>/<day>", methods=["GET"], endpoint="get_attendance")
    @faculty_required
    def get_attendance(subject_id: str, day: str):
        return jsonify(container.attendance_service.get_attendance(subject_id, day, email=current_claims().email))

    @app.route("/faculty/update-attendance", methods=["POST"], endpoint="update_attendance")
    @faculty_required
    def update_attendance():
        data = json_body()
        container.attendance_service.update_attendance(
            email=current_claims().email,
            subject_id=data.get("subjectID"),
            day=data.get("date"),
            updated_attendance=data.get("updatedAttendance"),
        )
        return jsonify({"success": True, "message": "Attendance updated successfully"})

    @app.route("/faculty/delete-attendance", methods=["DELETE"], endpoint="delete_attendance")
    @faculty_required
    def delete_attendance():
        data = json_body()
        container.attendance_service.delete_attendance(
            email=current_claims().email, subject_id=data.get("subjectID"), day=data.get("date")
        )
        return jsonify({"success": True, "message": "Attendance record deleted successfully"})
