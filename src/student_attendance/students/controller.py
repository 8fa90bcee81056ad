from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, page_request, success
from ..common.presenters import student_json
from ..common.validators import parse_positive_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    students = container.student_service
    registry = container.enrollment_registry

    def _with_classes(student):
        return student_json(student, classes=registry.classes_of(student.student_id))

    @app.route("/api/students", methods=["GET"], endpoint="students_list")
    def students_list():
        page = students.list(
            page=page_request(),
            search=request.args.get("search"),
            status=request.args.get("status"),
        )
        return success([_with_classes(s) for s in page.items], page=page)

    @app.route("/api/students/<int:student_id>", methods=["GET"], endpoint="students_get")
    def students_get(student_id: int):
        return success(_with_classes(students.get(student_id)))

    @app.route("/api/students", methods=["POST"], endpoint="students_create")
    def students_create():
        student = students.create(json_body())
        return success(_with_classes(student), message="Student created successfully", status=201)

    @app.route("/api/students/<int:student_id>", methods=["PUT"], endpoint="students_update")
    def students_update(student_id: int):
        student = students.update(student_id, json_body())
        return success(_with_classes(student), message="Student updated successfully")

    @app.route("/api/students/<int:student_id>", methods=["DELETE"], endpoint="students_delete")
    def students_delete(student_id: int):
        students.delete(student_id)
        return success(message="Student deleted successfully")

    @app.route("/api/students/<int:student_id>/enroll", methods=["POST"], endpoint="students_enroll")
    def students_enroll(student_id: int):
        class_id = parse_positive_int(json_body().get("class_id"), "class_id")
        registry.enroll(student_id, class_id)
        return success(_with_classes(students.get(student_id)), message="Student enrolled successfully")

    @app.route(
        "/api/students/<int:student_id>/classes/<int:class_id>",
        methods=["DELETE"],
        endpoint="students_unenroll",
    )
    def students_unenroll(student_id: int, class_id: int):
        registry.unenroll(student_id, class_id)
        return success(message="Student unenrolled successfully")
