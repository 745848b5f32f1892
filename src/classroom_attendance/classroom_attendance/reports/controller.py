from __future__ import annotations

import io

from flask import Flask, jsonify, send_file

from ..common.http import bearer_required, json_body
from ..core.enums import Role
from ..container import Container
from ..mail.mailer import XLSX_MIME


def register(app: Flask, container: Container) -> None:
    faculty_required = bearer_required(container.token_service, role=Role.FACULTY)

    @app.route("/faculty/export-attendance/<subject_id>", methods=["GET"], endpoint="export_attendance")
    @faculty_required
    def export_attendance(subject_id: str):
        filename, content = container.report_service.export(subject_id)
        return send_file(
            io.BytesIO(content),
            download_name=filename,
            as_attachment=True,
            mimetype="/".join(XLSX_MIME),
        )

    @app.route("/faculty/email-attendance", methods=["POST"], endpoint="email_attendance")
    @faculty_required
    def email_attendance():
        data = json_body()
        container.report_service.email_report(subject_id=data.get("subjectID"), to=data.get("email"))
        return jsonify({"message": "Attendance sheet sent successfully"})
