from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .alerts.controller import register as register_alerts
from .attendance.controller import register as register_attendance
from .container import Container, Settings, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_accounts, list_tables
from .performance.controller import register as register_performance
from .shifts.controller import register as register_shifts
from .system.controller import register as register_system
from .system.middleware import RateLimiter, install_cors, install_rate_limit
from .tasks.controller import register as register_tasks
from .tasks.schedule_controller import register as register_schedule
from .users.admin_controller import register as register_admin
from .users.controller import register as register_users
from .verification.controller import register as register_verification

logger = logging.getLogger(__name__)

PLACEHOLDER_SECRETS = {"please-set-SECRET_KEY", "dev-secret-key"}
REPO_ROOT = Path(__file__).resolve().parents[3]


def _configure_logging(debug: bool) -> None:
    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _prepare_database(settings_module, db_config: dict) -> None:
    if getattr(settings_module, "AUTO_INIT_DB", False):
        apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
        logger.debug("Schema ready (tables=%s)", len(list_tables(db_config)))
    if getattr(settings_module, "AUTO_SEED_DB", False):
        ensure_demo_accounts(db_config)
        apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app; pass a prepared container to skip all database setup."""
    load_dotenv(override=False)
    app = Flask(__name__)

    if container is None:
        settings_module = importlib.import_module(get_settings_module())
        settings = Settings.from_module(settings_module)
        _configure_logging(settings.debug)
        db_config = dict(settings_module.DB_CONFIG)
        logger.info(
            "Settings=%s db=%s@%s:%s/%s",
            settings_module.__name__,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if settings.environment == "production" and settings.secret_key in PLACEHOLDER_SECRETS:
            logger.warning("SECRET_KEY is not set; tokens are signed with a placeholder secret")

        _prepare_database(settings_module, db_config)
        container = build_container(db_config=db_config, settings=settings)
        container.conn.wait_until_ready(
            retries=settings.db_connect_retries, delay_seconds=settings.db_connect_retry_seconds
        )

    settings = container.settings
    app.secret_key = settings.secret_key
    app.config["DEBUG"] = settings.debug
    app.config["JSON_SORT_KEYS"] = False
    app.extensions["staff_management"] = container

    install_cors(app, allow_any=settings.is_development, origins=settings.cors_origins)
    install_rate_limit(
        app,
        RateLimiter(
            window_seconds=settings.rate_limit_window_seconds, max_requests=settings.rate_limit_max_requests
        ),
    )

    register_users(app, container)
    register_admin(app, container)
    register_attendance(app, container)
    register_shifts(app, container)
    register_tasks(app, container)
    register_schedule(app, container)
    register_verification(app, container)
    register_alerts(app, container)
    register_performance(app, container)
    register_system(app, container)

    return app
