from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import build_container
from .database.bootstrap import apply_schema, list_tables
from .finance.controller import register as register_finance
from .ledger.controller import register as register_ledger
from .reports.controller import register as register_reports
from .schedules.controller import register as register_schedules
from .seed import seed_demo_data
from .students.controller import register as register_students
from .subscriptions.controller import register as register_subscriptions

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def create_app(settings=None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    if settings is None:
        settings = importlib.import_module(get_settings_module())
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    backend = str(getattr(settings, "STORE_BACKEND", "memory")).lower()
    db_config = dict(getattr(settings, "DB_CONFIG", {}))
    if backend == "mysql" and getattr(settings, "AUTO_INIT_DB", False):
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        logger.info(f"Schema ready (tables={len(list_tables(db_config))})")

    container = build_container(settings)
    if getattr(settings, "AUTO_SEED_DB", False):
        seed_demo_data(container)
    container.state.reload()
    app.extensions["tutoring_center"] = container

    register_students(app, container)
    register_subscriptions(app, container)
    register_attendance(app, container)
    register_ledger(app, container)
    register_schedules(app, container)
    register_finance(app, container)
    register_reports(app, container)

    return app
