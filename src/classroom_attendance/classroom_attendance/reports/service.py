from __future__ import annotations

import io
import logging
from dataclasses import dataclass

import pandas as pd
from openpyxl.styles import Alignment, Font, PatternFill

from ..core.exceptions import NotFoundError, ValidationError
from ..mail.mailer import Attachment, Mailer
from ..subjects.model import Subject
from ..subjects.repository import SubjectRepository
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)

SHEET_NAME = "Attendance"
PERCENT_COLUMN = "Attendance %"
# Title, total-classes line and one blank row sit above the table header.
HEADER_OFFSET = 3


def band_colour(percentage: float) -> str:
    """Fill colour (RGB hex) for an attendance percentage."""
    if percentage <= 50:
        return "FF0000"
    if percentage <= 75:
        return "FFFF00"
    if percentage <= 85:
        return "90EE90"
    return "008000"


@dataclass(frozen=True)
class AttendanceSheet:
    subject: Subject
    frame: pd.DataFrame

    @property
    def filename(self) -> str:
        return f"Attendance_{self.subject.subject_id}.xlsx"

    @property
    def total_classes(self) -> int:
        return len(self.frame.columns) - 3


class AttendanceReportService:
    def __init__(self, subjects: SubjectRepository, users: UserRepository, mailer: Mailer):
        self._subjects = subjects
        self._users = users
        self._mailer = mailer

    def build_sheet(self, subject_id: str) -> AttendanceSheet:
        """One row per enrolled student: Name, Reg No, Attendance %, then P/A per date."""
        subject = self._subjects.get(subject_id)
        if not subject:
            raise NotFoundError("Subject not found")

        records = self._subjects.list_records(subject.subject_id)
        students = {u.user_id: u for u in self._users.get_many(subject.student_ids)}
        dates = [r.day_key for r in records]

        rows: list[dict] = []
        for student_id in subject.student_ids:
            student = students.get(student_id)
            if not student:
                continue
            marks = []
            for r in records:
                entry = r.entry_for(student_id)
                marks.append("P" if entry is not None and entry.present else "A")
            present = marks.count("P")
            percentage = round(present / len(records) * 100, 2) if records else 0.0
            row = {"Name": student.name, "Reg No": student.registration_number or "", PERCENT_COLUMN: percentage}
            row.update(zip(dates, marks))
            rows.append(row)

        frame = pd.DataFrame(rows, columns=["Name", "Reg No", PERCENT_COLUMN, *dates])
        return AttendanceSheet(subject=subject, frame=frame)

    def render_xlsx(self, sheet: AttendanceSheet) -> bytes:
        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            sheet.frame.to_excel(writer, index=False, sheet_name=SHEET_NAME, startrow=HEADER_OFFSET)
            ws = writer.sheets[SHEET_NAME]
            ws.cell(row=1, column=1, value=f"Attendance Report for {sheet.subject.subject_name}")
            ws.cell(row=2, column=1, value=f"Total Classes Conducted: {sheet.total_classes}")

            percent_col = sheet.frame.columns.get_loc(PERCENT_COLUMN) + 1
            first_data_row = HEADER_OFFSET + 2
            for offset, value in enumerate(sheet.frame[PERCENT_COLUMN]):
                cell = ws.cell(row=first_data_row + offset, column=percent_col)
                colour = band_colour(float(value))
                cell.fill = PatternFill(fill_type="solid", start_color=colour, end_color=colour)
                cell.font = Font(bold=True, color="FFFFFF")
                cell.alignment = Alignment(horizontal="center", vertical="center")
        return output.getvalue()

    def export(self, subject_id: str) -> tuple[str, bytes]:
        sheet = self.build_sheet(subject_id)
        return sheet.filename, self.render_xlsx(sheet)

    def email_report(self, *, subject_id: str, to: str) -> None:
        if not subject_id or not to:
            raise ValidationError("SubjectID and Email are required")
        sheet = self.build_sheet(subject_id)
        content = self.render_xlsx(sheet)
        self._mailer.send(
            to=to,
            subject=f"Attendance Report for {sheet.subject.subject_name}",
            body="Please find the attached attendance sheet.",
            attachments=[Attachment(filename=sheet.filename, content=content)],
        )
        logger.info("Attendance report for %s sent to %s", sheet.subject.subject_id, to)
