"""Dump the student attendance tables with ``mysqldump``.

Only the tables the service owns are dumped (students, classes, enrollments,
attendance_records), so the file can be replayed with ``mysql < file`` on top of
an empty database. Needs the MySQL client tools on PATH.
"""

from __future__ import annotations

import importlib
import os
import subprocess
import sys
from datetime import datetime
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for p in (REPO_ROOT, REPO_ROOT / "src"):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from config import get_settings_module

from student_attendance.database.bootstrap import REQUIRED_TABLES, missing_tables
from student_attendance.database.connection import DBConfig


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    target = DBConfig.from_dict(settings.DB_CONFIG)

    missing = missing_tables(settings.DB_CONFIG)
    if missing:
        raise SystemExit(f"Nothing to back up, missing tables: {', '.join(missing)} (run scripts/init_db.py)")

    out_dir = REPO_ROOT / "backups"
    out_dir.mkdir(parents=True, exist_ok=True)
    out_file = out_dir / f"{target.database}_{datetime.now():%Y%m%d_%H%M%S}.sql"

    cmd = [
        "mysqldump",
        f"--host={target.host}",
        f"--port={target.port}",
        f"--user={target.user}",
        "--single-transaction",
        "--skip-add-drop-table",
        target.database,
        *REQUIRED_TABLES,
    ]
    # Password goes through the environment so it does not show up in the process list.
    env = {**os.environ, "MYSQL_PWD": target.password}

    try:
        with out_file.open("wb") as f:
            subprocess.run(cmd, stdout=f, stderr=subprocess.PIPE, check=True, env=env)
    except FileNotFoundError:
        out_file.unlink(missing_ok=True)
        raise SystemExit("mysqldump not found; install the MySQL client tools.")
    except subprocess.CalledProcessError as e:
        out_file.unlink(missing_ok=True)
        raise SystemExit(f"mysqldump failed: {e.stderr.decode(errors='replace').strip()}")

    print(f"OK: Backed up {len(REQUIRED_TABLES)} tables of {target.describe()} -> {out_file}")


if __name__ == "__main__":
    main()
