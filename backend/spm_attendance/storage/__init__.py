"""Attendance storage: one interface, a database backend and an in-memory fallback."""
from .base import DuplicateRecordError, RecordStore
from .connectivity import Connectivity, DatabaseConnectivity, StaticConnectivity
from .criteria import Criteria, active_sessions, expired_sessions, owned_by
from .memory import MemoryRecordStore
from .sql import SqlRecordStore
from .switching import SwitchingRecordStore

__all__ = [
    'DuplicateRecordError', 'RecordStore',
    'Connectivity', 'DatabaseConnectivity', 'StaticConnectivity',
    'Criteria', 'active_sessions', 'expired_sessions', 'owned_by',
    'MemoryRecordStore', 'SqlRecordStore', 'SwitchingRecordStore'
]
