import os
import sqlite3
import threading


class Database:
    # Serialises schema creation across request threads
    _lock = threading.Lock()

    @staticmethod
    def connect(path):
        conn = sqlite3.connect(path)
        conn.row_factory = sqlite3.Row
        return conn

    @staticmethod
    def ensure_dir(path):
        """Create the directory holding a database file (only if there's a directory component)"""
        db_dir = os.path.dirname(path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    @classmethod
    def init_schema(cls, path, statements):
        """
        Run CREATE TABLE / CREATE INDEX statements against a database file.
        Thread-safe so concurrent first requests don't race each other.
        """
        with cls._lock:
            cls.ensure_dir(path)
            conn = cls.connect(path)
            try:
                cursor = conn.cursor()
                for statement in statements:
                    cursor.execute(statement)
                conn.commit()
            finally:
                conn.close()

