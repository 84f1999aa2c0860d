"""Database package: schema creation and session lifecycle.

Tables are defined as Flask-SQLAlchemy models in db.models and accessed
through the repositories in db.repositories.
"""

import logging

from extensions import db as sa_db

logger = logging.getLogger(__name__)


def init_db():
    """Create any missing tables. Requires an active app context."""
    import db.models  # noqa: F401
    sa_db.create_all()
    logger.debug("Database tables ensured")


def close_db():
    """Release the scoped session and pooled connections."""
    sa_db.session.remove()
    sa_db.engine.dispose()
