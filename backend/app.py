"""SEOPilot Flask application factory.

create_app() wires logging, Socket.IO, error handlers, auth/CORS, the
database, the background job queue and the /api/v1 blueprints. Outside
testing it also starts the generation-queue scheduler.
"""

import os
import json
import logging
from logging.handlers import RotatingFileHandler

from flask import Flask, g, has_app_context

from extensions import socketio

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3


class JSONLogFormatter(logging.Formatter):
    """One JSON object per record, tagged with the request id when there is one."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        if has_app_context() and getattr(g, "request_id", None):
            entry["request_id"] = g.request_id
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }
        return json.dumps(entry, default=str)


def configure_logging(settings) -> None:
    """Root logger level/format, plus a rotating file when log_file is set and writable."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    root = logging.getLogger()

    formatter = JSONLogFormatter() if settings.log_format.lower() == "json" else logging.Formatter(LOG_FORMAT)
    for handler in root.handlers:
        handler.setFormatter(formatter)

    path = settings.log_file
    if not path or any(getattr(h, "baseFilename", None) == os.path.abspath(path) for h in root.handlers):
        return
    try:
        if os.path.dirname(path):
            os.makedirs(os.path.dirname(path), exist_ok=True)
        file_handler = RotatingFileHandler(path, maxBytes=LOG_FILE_MAX_BYTES,
                                           backupCount=LOG_FILE_BACKUPS, encoding="utf-8")
    except OSError as e:
        logging.getLogger(__name__).warning("Log file %s unavailable: %s", path, e)
        return
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)


def _init_database(app, settings) -> bool:
    """Bind Flask-SQLAlchemy and create tables. Returns True for SQLite."""
    from extensions import db as sa_db

    url = settings.get_database_url()
    is_sqlite = url.startswith("sqlite")
    app.config["SQLALCHEMY_DATABASE_URI"] = url
    if is_sqlite:
        # Resolution workers open their own connections to the same file
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
            "connect_args": {"check_same_thread": False, "timeout": 15},
        }
        if not settings.database_url and os.path.dirname(settings.db_path):
            os.makedirs(os.path.dirname(settings.db_path), exist_ok=True)
    else:
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {"pool_pre_ping": True}

    sa_db.init_app(app)
    with app.app_context():
        from db import init_db
        init_db()
        if is_sqlite:
            from sqlalchemy import text
            with sa_db.engine.connect() as conn:
                conn.execute(text("PRAGMA journal_mode=WAL"))
                conn.execute(text("PRAGMA busy_timeout=5000"))
                conn.commit()
    return is_sqlite


def create_app(testing=False):
    """Build the SEOPilot API.

    Args:
        testing: Run background jobs inline and leave the scheduler off.
    """
    from config import get_settings

    settings = get_settings()
    configure_logging(settings)
    logger = logging.getLogger(__name__)

    app = Flask(__name__)
    app.config["TESTING"] = testing

    socketio.init_app(app, cors_allowed_origins=settings.cors_allowed_origins, async_mode="threading")

    from error_handler import register_error_handlers
    from auth import init_auth, init_cors
    register_error_handlers(app)
    init_cors(app)
    init_auth(app)

    is_sqlite = _init_database(app, settings)

    from job_queue import create_job_queue
    app.job_queue = create_job_queue(app=app, max_workers=0 if testing else settings.resolution_max_workers)

    from routes import register_blueprints
    register_blueprints(app)

    @socketio.on("connect")
    def _on_connect():
        logger.debug("Dashboard socket connected")

    if not testing:
        from queue_scheduler import start_queue_scheduler
        start_queue_scheduler(app, socketio)

    from version import __version__
    logger.info("SEOPilot %s ready (%s database)", __version__, "sqlite" if is_sqlite else "external")
    return app


if __name__ == "__main__":
    from config import get_settings
    socketio.run(create_app(), host="0.0.0.0", port=get_settings().port, allow_unsafe_werkzeug=True)
