"""
Virtual Sequence Generator Base Class
Counter-table sequences that work the same on SQLite and server databases
"""

from asset_register import db
from sqlalchemy import text
import threading
from abc import ABC, abstractmethod


class VirtualSequenceGenerator(ABC):
    """
    Abstract base class for sequence generators backed by a one-row counter table.

    The increment runs inside the caller's transaction, so a rolled-back
    batch also gives its numbers back.
    """

    _lock = threading.Lock()

    @classmethod
    @abstractmethod
    def get_sequence_table_name(cls):
        """Return the table name for the sequence counter"""

    @classmethod
    def get_next_id(cls):
        """Increment the counter and return the new value"""
        with cls._lock:
            table = cls.get_sequence_table_name()
            db.session.execute(text(f"UPDATE {table} SET current_value = current_value + 1"))
            result = db.session.execute(text(f"SELECT current_value FROM {table}"))
            return result.scalar()

    @classmethod
    def create_sequence_if_not_exists(cls):
        """Create and initialize the counter table"""
        table = cls.get_sequence_table_name()
        try:
            db.session.execute(text(f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id INTEGER PRIMARY KEY,
                    current_value INTEGER DEFAULT 0
                )
            """))
            result = db.session.execute(text(f"SELECT COUNT(*) FROM {table}"))
            if result.scalar() == 0:
                db.session.execute(text(f"INSERT INTO {table} (current_value) VALUES (0)"))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
