"""Base model: surrogate key, audit timestamps, JSON-ready dict."""
from datetime import datetime
from typing import Dict, Any
from sqlalchemy.exc import SQLAlchemyError
from spm_attendance import db
from spm_attendance.utils.helpers import utcnow, to_iso

class BaseModel(db.Model):
    """Abstract parent of every table in the app.

    Timestamps are naive UTC (see :func:`utcnow`) and render with a ``Z``
    suffix, the same form the attendance payloads use.
    """

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def save(self) -> 'BaseModel':
        """Add and commit; the session is rolled back if the commit fails."""
        db.session.add(self)
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        return self

    def to_dict(self, exclude: list = None) -> Dict[str, Any]:
        """Column values keyed by column name, minus ``exclude``."""
        skipped = set(exclude or [])
        return {
            column.name: self._serialize(getattr(self, column.name))
            for column in self.__table__.columns
            if column.name not in skipped
        }

    @staticmethod
    def _serialize(value: Any) -> Any:
        return to_iso(value) if isinstance(value, datetime) else value

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} {self.id}>'
