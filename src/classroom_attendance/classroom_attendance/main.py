from __future__ import annotations

import atexit
import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .common.http import SESSION_ENDPOINTS
from .container import Container, build_container
from .core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .attendance.controller import register as register_attendance
from .otp.controller import register as register_otp
from .reports.controller import register as register_reports
from .requests.controller import register as register_requests
from .subjects.controller import register as register_subjects
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def _error_response(message: str, status: int):
    body = {"error": message}
    if request.endpoint in SESSION_ENDPOINTS:
        body["success"] = False
    return jsonify(body), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        for error_type, status in _STATUS_BY_ERROR:
            if isinstance(e, error_type):
                return _error_response(str(e), status)
        # StoreUnavailableError, DeliveryError and any future internal failure
        logger.error("%s on %s: %s", type(e).__name__, request.path, e)
        return _error_response("Internal Server Error", 500)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return _error_response(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s", request.path)
        return _error_response("Internal Server Error", 500)


def _build_default_container(settings) -> Container:
    db_config = getattr(settings, "DB_CONFIG")

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        ensure_demo_users(db_config)
        logger.info("Demo accounts ready")

    container = build_container(
        db_config=db_config,
        redis_config=getattr(settings, "REDIS_CONFIG"),
        mail_config=getattr(settings, "MAIL_CONFIG"),
        jwt_secret=getattr(settings, "JWT_SECRET_KEY"),
        access_token_minutes=int(getattr(settings, "ACCESS_TOKEN_MINUTES", 15)),
        refresh_token_days=int(getattr(settings, "REFRESH_TOKEN_DAYS", 7)),
        session_ttl_seconds=int(getattr(settings, "SESSION_TTL_SECONDS", 300)),
        mark_requires_open_session=bool(getattr(settings, "MARK_REQUIRES_OPEN_SESSION", False)),
    )
    container.conn.wait_until_ready()
    container.redis.connect()
    atexit.register(container.redis.close)
    return container


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    logger.info("Starting with settings=%s", settings_module)

    if container is None:
        container = _build_default_container(settings)

    register_error_handlers(app)
    register_users(app, container)
    register_otp(app, container)
    register_subjects(app, container)
    register_attendance(app, container)
    register_requests(app, container)
    register_reports(app, container)

    return app
