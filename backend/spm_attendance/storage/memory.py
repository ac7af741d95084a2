"""Process-local record store used while the database is unreachable."""
import itertools
import threading
from typing import Any, List, Optional

from spm_attendance.storage.base import RecordStore
from spm_attendance.storage.criteria import Criteria, Sort
from spm_attendance.utils.helpers import utcnow


def _sort_key(value):
    # None sorts first, as NULLs do in SQLite
    return (value is not None, value)


class MemoryRecordStore(RecordStore):
    """Thread-safe ordered list of model instances.

    Predicates behave as in :class:`SqlRecordStore`. Unique keys are *not*
    enforced here; callers that need them serialize their own writes.
    """

    def __init__(self):
        self._records: List[Any] = []
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    def create(self, record: Any) -> Any:
        with self._lock:
            if getattr(record, 'id', None) is None:
                record.id = next(self._ids)
            if getattr(record, 'created_at', None) is None:
                record.created_at = utcnow()
                record.updated_at = record.created_at
            self._records.append(record)
        return record

    def find_one(self, criteria: Criteria, sort: Optional[Sort] = None) -> Optional[Any]:
        found = self.find_many(criteria, sort=sort, limit=1)
        return found[0] if found else None

    def find_many(self, criteria: Criteria, sort: Optional[Sort] = None,
                  limit: Optional[int] = None, offset: int = 0) -> List[Any]:
        with self._lock:
            found = [record for record in self._records if criteria.matches(record)]

        # Stable sorts applied last key first give a multi-key ordering
        for field, direction in reversed(sort or []):
            found.sort(key=lambda record: _sort_key(getattr(record, field, None)),
                       reverse=direction == 'desc')

        end = None if limit is None else offset + limit
        return found[offset:end]

    def delete_many(self, criteria: Criteria) -> int:
        with self._lock:
            kept = [record for record in self._records if not criteria.matches(record)]
            deleted = len(self._records) - len(kept)
            self._records = kept
        return deleted

    def count(self, criteria: Criteria) -> int:
        with self._lock:
            return sum(1 for record in self._records if criteria.matches(record))

    def count_distinct(self, field: str, criteria: Criteria) -> int:
        with self._lock:
            values = {getattr(record, field, None) for record in self._records if criteria.matches(record)}
        values.discard(None)
        return len(values)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
