"""Shared helpers for the SEOPilot repositories.

The session is Flask-SQLAlchemy's, scoped to the current application
context: background workers push their own context and get their own
session. List-valued fields (images, categories, issues, results) live in
Text columns suffixed `_json` and are decoded when a row becomes a dict.
"""

import json
from contextlib import contextmanager
from datetime import UTC, datetime

from extensions import db

JSON_SUFFIX = "_json"


def dump_json(value) -> str:
    return json.dumps(value, ensure_ascii=False)


class BaseRepository:
    """Session access, commit control and row-to-dict conversion."""

    def __init__(self):
        self._batch_mode = False

    @property
    def session(self):
        return db.session

    def _commit(self):
        """Commit unless inside batch()."""
        if not self._batch_mode:
            self.session.commit()

    @contextmanager
    def batch(self):
        """Group several writes into one commit, rolled back on error."""
        self._batch_mode = True
        try:
            yield self
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        finally:
            self._batch_mode = False

    def _to_dict(self, row):
        """Column dict of a row; `<name>_json` columns come back decoded as `<name>`."""
        if row is None:
            return None
        d = {}
        for column in row.__table__.columns:
            value = getattr(row, column.key)
            if column.key.endswith(JSON_SUFFIX):
                d[column.key[:-len(JSON_SUFFIX)]] = json.loads(value) if value else None
            else:
                d[column.key] = value
        return d

    def _now(self) -> str:
        """Current UTC time, ISO 8601."""
        return datetime.now(UTC).isoformat()
