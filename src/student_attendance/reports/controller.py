from __future__ import annotations

from flask import Flask, request

from ..common.http import success
from ..common.presenters import overview_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/reports/summary", methods=["GET"], endpoint="attendance_summary")
    def attendance_summary():
        summary = container.summary_aggregator.summarize(
            class_id=request.args.get("class_id"),
            start=request.args.get("start_date"),
            end=request.args.get("end_date"),
        )
        return success(summary.as_dict())

    @app.route("/api/reports/overview", methods=["GET"], endpoint="reports_overview")
    def reports_overview():
        overview = container.overview_service.overview(request.args.get("date") or None)
        return success(overview_json(overview))
