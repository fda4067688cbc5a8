from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .container import Container, build_container
from .core.constants import DEFAULT_UPLOAD_MAX_ATTEMPTS, DEFAULT_UPLOAD_WINDOW_SECONDS
from .payroll.controller import register as register_payroll_settings
from .records.controller import register as register_records

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

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
        container = build_container(
            db_config=db_config,
            upload_max_attempts=int(getattr(settings, "UPLOAD_MAX_ATTEMPTS", DEFAULT_UPLOAD_MAX_ATTEMPTS)),
            upload_window_seconds=int(getattr(settings, "UPLOAD_WINDOW_SECONDS", DEFAULT_UPLOAD_WINDOW_SECONDS)),
        )

    register_records(app, container)
    register_payroll_settings(app, container)
    return app
