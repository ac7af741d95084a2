"""Record store that routes each call by current connectivity."""
from typing import Any, List, Optional

from spm_attendance.storage.base import RecordStore
from spm_attendance.storage.connectivity import Connectivity
from spm_attendance.storage.criteria import Criteria, Sort


class SwitchingRecordStore(RecordStore):
    """Uses ``persistent`` while connected and ``fallback`` otherwise.

    The choice is made per call. Records written to one backend are not
    copied to the other, so a session created during an outage is not
    visible once the database is back.
    """

    def __init__(self, persistent: RecordStore, fallback: RecordStore, connectivity: Connectivity):
        self.persistent = persistent
        self.fallback = fallback
        self.connectivity = connectivity

    @property
    def backend(self) -> RecordStore:
        return self.persistent if self.connectivity.is_connected() else self.fallback

    def create(self, record: Any) -> Any:
        return self.backend.create(record)

    def find_one(self, criteria: Criteria, sort: Optional[Sort] = None) -> Optional[Any]:
        return self.backend.find_one(criteria, sort=sort)

    def find_many(self, criteria: Criteria, sort: Optional[Sort] = None,
                  limit: Optional[int] = None, offset: int = 0) -> List[Any]:
        return self.backend.find_many(criteria, sort=sort, limit=limit, offset=offset)

    def delete_many(self, criteria: Criteria) -> int:
        return self.backend.delete_many(criteria)

    def count(self, criteria: Criteria) -> int:
        return self.backend.count(criteria)

    def count_distinct(self, field: str, criteria: Criteria) -> int:
        return self.backend.count_distinct(field, criteria)
