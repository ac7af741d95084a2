"""Storage mode providers: is the persistent store reachable right now?"""
import logging
import threading
from abc import ABC, abstractmethod

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from spm_attendance import db

logger = logging.getLogger(__name__)


class Connectivity(ABC):
    """Answers whether the persistent backend should be used."""

    @abstractmethod
    def is_connected(self) -> bool:
        """Checked on every storage call; implementations must not cache."""


class DatabaseConnectivity(Connectivity):
    """Pings the application database."""

    def is_connected(self) -> bool:
        try:
            db.session.execute(text('SELECT 1'))
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning('Database unreachable, using in-memory attendance store: %s', e)
            return False


class StaticConnectivity(Connectivity):
    """Fixed answer that can be flipped at runtime."""

    def __init__(self, connected: bool = True):
        self._connected = connected
        self._lock = threading.Lock()

    def set(self, connected: bool) -> None:
        with self._lock:
            self._connected = connected

    def is_connected(self) -> bool:
        with self._lock:
            return self._connected
