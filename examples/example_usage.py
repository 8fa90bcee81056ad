"""Example: drive the service layer directly, without Flask.

Marks today's attendance for everyone enrolled in the first class and prints
the summary for the day.
"""

import importlib
from datetime import date

from config import get_settings_module

from student_attendance.attendance.model import BulkEntry
from student_attendance.common.pagination import PageRequest
from student_attendance.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    classes = container.class_service.list(page=PageRequest(page=1, limit=1))
    if not classes.items:
        print("No classes yet; run scripts/seed_db.py first.")
        return

    cls = classes.items[0]
    today = date.today()
    roster = container.enrollment_registry.roster(cls.class_id)
    result = container.attendance_service.mark_bulk(
        cls.class_id,
        today,
        [BulkEntry(student_ref=s.student_id, status="present") for s in roster],
        marked_by="example",
    )
    print(f"{cls.class_code}: {len(result.results)} marked, {len(result.errors)} errors")
    print(container.summary_aggregator.summarize(class_id=cls.class_id, start=today, end=today).as_dict())


if __name__ == "__main__":
    main()
