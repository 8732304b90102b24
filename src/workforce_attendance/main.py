from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.logging_utils import configure_logging
from .core.constants import DEFAULT_PAGE_SIZE
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)


def create_app(container: Container | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["DEFAULT_PAGE_SIZE"] = int(getattr(settings, "DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE))
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        container = build_container(db_config=db_config)

    @app.route("/health", endpoint="health")
    def health():
        return jsonify({"status": "ok"}), 200

    register_attendance(app, container)
    register_reports(app, container)

    return app
