from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.datetime_utils import configure_timezone
from .common.rate_limit import RateLimiter, build_rate_limiter
from .common.web import register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_SESSION_DAYS, DEFAULT_TIMEZONE, MAX_UPLOAD_BYTES
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .database.connection import DBConfig

from .analytics.controller import register as register_analytics
from .audit.controller import register as register_audit
from .blocks.controller import register as register_blocks
from .checkins.controller import register as register_checkins
from .complaints.controller import register as register_complaints
from .exports.controller import register as register_exports
from .menus.controller import register as register_menus
from .notifications.controller import register as register_notifications
from .reviews.controller import register as register_reviews
from .settings.controller import register as register_settings
from .superadmin.controller import register as register_superadmin
from .system.controller import register as register_system
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def create_app(
    *,
    settings_module: Optional[str] = None,
    container: Optional[Container] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> Flask:
    """Application factory.

    Tests pass a ``container`` of in-memory repositories; the database
    bootstrap only runs when the container is built here.
    """
    load_dotenv(override=False)
    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    configure_timezone(str(getattr(settings, "TIMEZONE", DEFAULT_TIMEZONE)))

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["RATELIMIT_ENABLED"] = bool(getattr(settings, "RATELIMIT_ENABLED", True))
    app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(days=DEFAULT_SESSION_DAYS)
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_SECURE"] = not app.config["DEBUG"] and not app.config["TESTING"]

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.debug("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).describe())

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
            ensure_demo_users(
                db_config,
                super_admin_register_id=str(getattr(settings, "SUPER_ADMIN_REGISTER_ID", "SUPERADMIN")),
                super_admin_password=str(getattr(settings, "SUPER_ADMIN_PASSWORD", "superadmin123")),
            )
            logger.info("Demo seed ready")

        container = build_container(db_config=db_config, settings=settings)

    app.extensions["hostel_container"] = container
    app.extensions["rate_limiter"] = rate_limiter or build_rate_limiter(getattr(settings, "REDIS_URL", None))

    register_error_handlers(app)

    register_users(app, container)
    register_blocks(app, container)
    register_settings(app, container)
    register_checkins(app, container)
    register_menus(app, container)
    register_reviews(app, container)
    register_complaints(app, container)
    register_analytics(app, container)
    register_superadmin(app, container)
    register_audit(app, container)
    register_exports(app, container)
    register_notifications(app, container)
    register_system(app, container)

    return app
