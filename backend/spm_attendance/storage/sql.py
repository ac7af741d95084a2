"""Persistent record store backed by Flask-SQLAlchemy."""
import logging
from typing import Any, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from spm_attendance import db
from spm_attendance.storage.base import DuplicateRecordError, RecordStore
from spm_attendance.storage.criteria import Criteria, Sort

logger = logging.getLogger(__name__)


class SqlRecordStore(RecordStore):
    """Record store over one model's table. Unique constraints are enforced by the database."""

    def __init__(self, model):
        self.model = model

    def _query(self, criteria: Criteria, sort: Optional[Sort] = None):
        query = self.model.query.filter(criteria.to_clause(self.model))
        for field, direction in sort or []:
            column = getattr(self.model, field)
            query = query.order_by(column.desc() if direction == 'desc' else column.asc())
        return query

    def create(self, record: Any) -> Any:
        try:
            db.session.add(record)
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            logger.info('Duplicate %s rejected: %s', self.model.__name__, e.orig)
            raise DuplicateRecordError(str(e.orig)) from e
        except SQLAlchemyError:
            db.session.rollback()
            raise
        return record

    def find_one(self, criteria: Criteria, sort: Optional[Sort] = None) -> Optional[Any]:
        return self._query(criteria, sort).first()

    def find_many(self, criteria: Criteria, sort: Optional[Sort] = None,
                  limit: Optional[int] = None, offset: int = 0) -> List[Any]:
        query = self._query(criteria, sort)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def delete_many(self, criteria: Criteria) -> int:
        try:
            deleted = self._query(criteria).delete(synchronize_session=False)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        return deleted

    def count(self, criteria: Criteria) -> int:
        return self._query(criteria).count()

    def count_distinct(self, field: str, criteria: Criteria) -> int:
        column = getattr(self.model, field)
        return self._query(criteria).with_entities(func.count(func.distinct(column))).scalar() or 0
