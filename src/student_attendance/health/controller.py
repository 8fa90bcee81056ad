from __future__ import annotations

from flask import Flask

from ..common.http import failure, success
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        if container.conn is not None and not container.conn.ping():
            return failure("Database unreachable", kind="internal", status=503)
        return success({"status": "ok"}, message="Student attendance API is running")
