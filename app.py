"""Development entry point: ``python app.py`` or ``flask --app app run``."""
from __future__ import annotations

import importlib

from config import get_settings_module
from student_attendance.main import create_app

app = create_app()

if __name__ == "__main__":
    settings = importlib.import_module(get_settings_module())
    app.run(
        host=getattr(settings, "HOST", "127.0.0.1"),
        port=int(getattr(settings, "PORT", 5000)),
        debug=bool(getattr(settings, "DEBUG", False)),
    )
