from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, page_request, success
from ..common.presenters import class_json, student_ref_json
from ..common.validators import parse_positive_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    classes = container.class_service
    registry = container.enrollment_registry

    def _with_students(cls):
        return class_json(cls, students=registry.roster(cls.class_id))

    @app.route("/api/classes", methods=["GET"], endpoint="classes_list")
    def classes_list():
        page = classes.list(
            page=page_request(),
            search=request.args.get("search"),
            status=request.args.get("status"),
        )
        return success([_with_students(c) for c in page.items], page=page)

    @app.route("/api/classes/<int:class_id>", methods=["GET"], endpoint="classes_get")
    def classes_get(class_id: int):
        return success(_with_students(classes.get(class_id)))

    @app.route("/api/classes", methods=["POST"], endpoint="classes_create")
    def classes_create():
        cls = classes.create(json_body())
        return success(class_json(cls, enrolled=0), message="Class created successfully", status=201)

    @app.route("/api/classes/<int:class_id>", methods=["PUT"], endpoint="classes_update")
    def classes_update(class_id: int):
        cls = classes.update(class_id, json_body())
        return success(_with_students(cls), message="Class updated successfully")

    @app.route("/api/classes/<int:class_id>", methods=["DELETE"], endpoint="classes_delete")
    def classes_delete(class_id: int):
        classes.delete(class_id)
        return success(message="Class deleted successfully")

    @app.route("/api/classes/<int:class_id>/students", methods=["GET"], endpoint="classes_students")
    def classes_students(class_id: int):
        return success([student_ref_json(s) for s in classes.students(class_id)])

    @app.route("/api/classes/<int:class_id>/enroll", methods=["POST"], endpoint="classes_enroll")
    def classes_enroll(class_id: int):
        student_id = parse_positive_int(json_body().get("student_id"), "student_id")
        registry.enroll(student_id, class_id)
        return success(_with_students(classes.get(class_id)), message="Student enrolled in class successfully")
