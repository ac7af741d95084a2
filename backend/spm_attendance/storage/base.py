"""Record store interface."""
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from spm_attendance.storage.criteria import Criteria, Sort


class DuplicateRecordError(Exception):
    """A unique key at the storage layer rejected the record."""


class RecordStore(ABC):
    """Narrow create/find/delete interface over one record type."""

    @abstractmethod
    def create(self, record: Any) -> Any:
        """Persist ``record`` and return it."""

    @abstractmethod
    def find_one(self, criteria: Criteria, sort: Optional[Sort] = None) -> Optional[Any]:
        """First record matching ``criteria``, or None."""

    @abstractmethod
    def find_many(self, criteria: Criteria, sort: Optional[Sort] = None,
                  limit: Optional[int] = None, offset: int = 0) -> List[Any]:
        """Records matching ``criteria``; ``sort`` is a list of ``(field, 'asc'|'desc')``."""

    @abstractmethod
    def delete_many(self, criteria: Criteria) -> int:
        """Delete every matching record and return how many went."""

    @abstractmethod
    def count(self, criteria: Criteria) -> int:
        """Number of matching records."""

    @abstractmethod
    def count_distinct(self, field: str, criteria: Criteria) -> int:
        """Number of distinct non-null ``field`` values among matching records."""
