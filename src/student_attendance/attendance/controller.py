from __future__ import annotations

import csv
import io

from flask import Flask, request

from ..common.http import json_body, page_request, success
from ..common.presenters import attendance_json, attendance_row_json, bulk_json, class_day_json
from ..container import Container
from ..core.exceptions import ValidationError
from .model import BulkEntry
from .service import build_filters

_CSV_FIELDS = [
    "date",
    "student_number",
    "student_name",
    "class_code",
    "class_name",
    "status",
    "notes",
    "marked_by",
    "time_marked",
]


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service

    def _filters_from_args():
        return build_filters(
            class_id=request.args.get("class_id"),
            student_id=request.args.get("student_id"),
            status=request.args.get("status"),
            on_date=request.args.get("date"),
            start=request.args.get("start_date"),
            end=request.args.get("end_date"),
        )

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    def attendance_list():
        page = attendance.list_records(_filters_from_args(), page=page_request())
        return success([attendance_row_json(r) for r in page.items], page=page)

    @app.route("/api/attendance/<int:class_id>/<day>", methods=["GET"], endpoint="attendance_class_day")
    def attendance_class_day(class_id: int, day: str):
        return success(class_day_json(attendance.get_for_class_and_date(class_id, day)))

    @app.route("/api/attendance", methods=["POST"], endpoint="attendance_mark")
    def attendance_mark():
        data = json_body()
        outcome = attendance.mark_one(
            data.get("student_id"),
            data.get("class_id"),
            data.get("date"),
            data.get("status"),
            notes=data.get("notes"),
            marked_by=data.get("marked_by"),
        )
        if outcome.created:
            return success(attendance_json(outcome.record), message="Attendance marked successfully", status=201)
        return success(attendance_json(outcome.record), message="Attendance updated successfully")

    @app.route("/api/attendance/bulk", methods=["POST"], endpoint="attendance_bulk")
    @app.route("/api/attendance/mark-bulk", methods=["POST"], endpoint="attendance_mark_bulk")
    def attendance_bulk():
        data = json_body()
        items = data.get("attendance_list")
        if not isinstance(items, list):
            raise ValidationError("attendance_list must be a list")

        entries = [
            BulkEntry(student_ref=i.get("student_id"), status=i.get("status"), notes=i.get("notes"))
            if isinstance(i, dict)
            else BulkEntry(student_ref=i, status=None)
            for i in items
        ]
        result = attendance.mark_bulk(
            data.get("class_id"),
            data.get("date"),
            entries,
            marked_by=data.get("marked_by"),
        )
        message = f"Attendance processed: {len(result.results)} successful, {len(result.errors)} errors"
        return success(bulk_json(result), message=message)

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="attendance_delete")
    def attendance_delete(attendance_id: int):
        attendance.delete(attendance_id)
        return success(message="Attendance record deleted successfully")

    @app.route("/api/attendance/export.csv", methods=["GET"], endpoint="attendance_export_csv")
    def attendance_export_csv():
        rows = attendance.export_rows(_filters_from_args())

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=_CSV_FIELDS)
        writer.writeheader()
        for row in rows:
            r = row.record
            writer.writerow(
                {
                    "date": r.attendance_date.isoformat(),
                    "student_number": row.student_number or "",
                    "student_name": row.student_name or "",
                    "class_code": row.class_code or "",
                    "class_name": row.class_name or "",
                    "status": r.status.value,
                    "notes": r.notes or "",
                    "marked_by": r.marked_by,
                    "time_marked": r.time_marked.isoformat(timespec="seconds"),
                }
            )

        filename = f"attendance-report-{container.clock().date().isoformat()}.csv"
        return app.response_class(
            out.getvalue().encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
