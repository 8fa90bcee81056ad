from tests.conftest import MATH, student_payload


def _setup(client):
    cls = client.post("/api/classes", json=MATH).get_json()["data"]
    a = client.post("/api/students", json=student_payload(1, first_name="Alice")).get_json()["data"]
    b = client.post("/api/students", json=student_payload(2, first_name="Bob")).get_json()["data"]
    for s in (a, b):
        client.post(f"/api/students/{s['student_id']}/enroll", json={"class_id": cls["class_id"]})
    return cls, a, b


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.get_json()["data"] == {"status": "ok"}


def test_create_student_and_read_back_with_classes(client):
    cls, a, _ = _setup(client)

    res = client.get(f"/api/students/{a['student_id']}")
    body = res.get_json()

    assert body["success"] is True
    assert body["data"]["email"] == "student1@school.example"
    assert body["data"]["classes"] == [
        {"class_id": cls["class_id"], "class_code": "MATH101", "class_name": "Algebra I"}
    ]


def test_class_roster_endpoint(client):
    cls, _, _ = _setup(client)

    roster = client.get(f"/api/classes/{cls['class_id']}/students").get_json()["data"]
    detail = client.get(f"/api/classes/{cls['class_id']}").get_json()["data"]

    assert [s["first_name"] for s in roster] == ["Alice", "Bob"]
    assert detail["enrolled_count"] == 2
    assert detail["schedule"]["day_of_week"] == ["Monday", "Wednesday"]


def test_error_envelope_and_status_codes(client):
    cls, a, _ = _setup(client)
    c = client.post("/api/students", json=student_payload(3)).get_json()["data"]

    missing = client.get("/api/students/999")
    dup = client.post("/api/students", json=student_payload(1))
    full = client.post(f"/api/classes/{cls['class_id']}/enroll", json={"student_id": c["student_id"]})
    bad = client.post("/api/attendance", json={"student_id": a["student_id"], "class_id": cls["class_id"], "status": "x", "date": "2026-03-02"})
    not_json = client.post("/api/attendance", data="hello", content_type="text/plain")

    assert (missing.status_code, missing.get_json()["error"]) == (404, "not_found")
    assert missing.get_json() == {"success": False, "message": "Student not found", "error": "not_found"}
    assert (dup.status_code, dup.get_json()["error"]) == (409, "conflict")
    assert (full.status_code, full.get_json()["error"]) == (400, "invalid_state")
    assert (bad.status_code, bad.get_json()["error"]) == (400, "validation")
    assert not_json.status_code == 400


def test_mark_returns_201_then_200(client):
    cls, a, _ = _setup(client)
    payload = {"student_id": a["student_id"], "class_id": cls["class_id"], "date": "2026-03-02T09:10:00", "status": "present"}

    first = client.post("/api/attendance", json=payload)
    second = client.post("/api/attendance", json={**payload, "status": "late", "date": "2026-03-02"})

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.get_json()["data"]["attendance_id"] == first.get_json()["data"]["attendance_id"]
    assert second.get_json()["data"]["status"] == "late"
    assert second.get_json()["data"]["date"] == "2026-03-02"


def test_bulk_endpoint_reports_partial_failure(client):
    cls, a, b = _setup(client)

    res = client.post(
        "/api/attendance/mark-bulk",
        json={
            "class_id": cls["class_id"],
            "date": "2026-03-02",
            "marked_by": "ms.tran",
            "attendance_list": [
                {"student_id": a["student_id"], "status": "present"},
                {"student_id": b["student_id"], "status": "gone"},
                {"student_id": 999, "status": "present"},
            ],
        },
    )
    body = res.get_json()

    assert res.status_code == 200
    assert body["message"] == "Attendance processed: 1 successful, 2 errors"
    assert [e["kind"] for e in body["data"]["errors"]] == ["validation", "not_found"]
    assert body["data"]["results"][0]["marked_by"] == "ms.tran"


def test_bulk_requires_a_list(client):
    cls, _, _ = _setup(client)
    res = client.post("/api/attendance/bulk", json={"class_id": cls["class_id"], "date": "2026-03-02"})
    assert res.status_code == 400


def test_class_day_view_shows_unmarked_students(client):
    cls, a, _ = _setup(client)
    client.post("/api/attendance", json={"student_id": a["student_id"], "class_id": cls["class_id"], "date": "2026-03-02", "status": "present"})

    body = client.get(f"/api/attendance/{cls['class_id']}/2026-03-02").get_json()["data"]

    assert body["date"] == "2026-03-02"
    assert [(s["first_name"], s["marked"]) for s in body["students"]] == [("Alice", True), ("Bob", False)]
    assert body["students"][1]["attendance"] is None


def test_list_pagination_and_summary(client):
    cls, a, b = _setup(client)
    for day in ("2026-03-02", "2026-03-03", "2026-03-04"):
        client.post("/api/attendance", json={"student_id": a["student_id"], "class_id": cls["class_id"], "date": day, "status": "present"})
    client.post("/api/attendance", json={"student_id": b["student_id"], "class_id": cls["class_id"], "date": "2026-03-02", "status": "absent"})

    listing = client.get(f"/api/attendance?class_id={cls['class_id']}&limit=3&page=2").get_json()
    summary = client.get(f"/api/attendance/reports/summary?class_id={cls['class_id']}&end_date=2026-03-03").get_json()

    assert listing["pagination"] == {"current_page": 2, "total_pages": 2, "total_items": 4, "items_per_page": 3}
    assert len(listing["data"]) == 1
    assert summary["data"] == {"present": 2, "absent": 1, "late": 0, "excused": 0, "total": 3}


def test_csv_export(client):
    cls, a, _ = _setup(client)
    client.post("/api/attendance", json={"student_id": a["student_id"], "class_id": cls["class_id"], "date": "2026-03-02", "status": "late", "notes": "bus"})

    res = client.get("/api/attendance/export.csv")
    text = res.data.decode("utf-8-sig").splitlines()

    assert res.mimetype == "text/csv"
    assert res.headers["Content-Disposition"] == "attachment; filename=attendance-report-2026-03-02.csv"
    assert text[0].startswith("date,student_number,student_name")
    assert text[1].startswith("2026-03-02,S-1001,Alice Last1,MATH101,Algebra I,late,bus,system,")


def test_unenroll_and_delete_endpoints(client):
    cls, a, _ = _setup(client)

    gone = client.delete(f"/api/students/{a['student_id']}/classes/{cls['class_id']}")
    again = client.delete(f"/api/students/{a['student_id']}/classes/{cls['class_id']}")
    deleted = client.delete(f"/api/classes/{cls['class_id']}")

    assert gone.status_code == 200
    assert again.get_json()["error"] == "invalid_state"
    assert deleted.status_code == 200
    assert client.get(f"/api/classes/{cls['class_id']}").status_code == 404


def test_overview(client):
    _setup(client)
    body = client.get("/api/reports/overview?date=2026-03-02").get_json()["data"]
    assert body["total_students"] == 2
    assert body["today"]["total"] == 0
    assert body["attendance_rate"] == 0.0
