"""
Centralized logging service for Newsdesk.
Provides structured logging with database storage and easy integration.
"""

import json
import logging
from datetime import datetime, timedelta
from flask import request, has_request_context
from .database import Database
from .config import get_config_value

_console = logging.getLogger('newsdesk')

_LOGS_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS app_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp TEXT NOT NULL,
        level TEXT NOT NULL,
        source TEXT NOT NULL,
        message TEXT NOT NULL,
        details TEXT,
        ip_address TEXT,
        user_agent TEXT,
        request_path TEXT,
        user_id TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_logs_timestamp ON app_logs(timestamp DESC)",
    "CREATE INDEX IF NOT EXISTS idx_logs_level ON app_logs(level)",
    "CREATE INDEX IF NOT EXISTS idx_logs_source ON app_logs(source)",
]


class LoggingService:
    """Centralized logging service for application-wide logging"""

    @staticmethod
    def _db_path():
        return get_config_value('ANALYTICS_DB')

    @staticmethod
    def _ensure_logs_table():
        """Ensure the app_logs table exists"""
        Database.init_schema(LoggingService._db_path(), _LOGS_SCHEMA)

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None

        ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
        if ip_address and ',' in ip_address:
            ip_address = ip_address.split(',')[0].strip()

        user_agent = request.headers.get('User-Agent', '')
        return ip_address, user_agent, request.path

    @staticmethod
    def log(level, source, message, details=None, user_id=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (selection, publication, reader, etc.)
            message (str): Main log message
            details (str/dict): Additional details (will be JSON-encoded if dict)
            user_id (str): Optional user identifier
        """
        level = level.upper()
        _console.log(getattr(logging, level, logging.INFO), "[%s] %s", source, message)

        try:
            LoggingService._ensure_logs_table()

            ip_address, user_agent, request_path = LoggingService._get_request_context()

            if isinstance(details, (dict, list)):
                details = json.dumps(details, indent=2, default=str)

            timestamp = datetime.now().isoformat()

            conn = Database.connect(LoggingService._db_path())
            try:
                conn.execute("""
                    INSERT INTO app_logs
                    (timestamp, level, source, message, details, ip_address, user_agent, request_path, user_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    timestamp, level, source, message, details,
                    ip_address, user_agent, request_path, user_id
                ))
                conn.commit()
            finally:
                conn.close()

        except Exception as e:
            # Fallback to console logging if database fails
            print(f"[{datetime.now().isoformat()}] [{level}] [{source}] {message}")
            if details:
                print(f"Details: {details}")
            print(f"Logging service error: {e}")

    @staticmethod
    def info(source, message, details=None, user_id=None):
        LoggingService.log('INFO', source, message, details, user_id)

    @staticmethod
    def error(source, message, details=None, user_id=None):
        LoggingService.log('ERROR', source, message, details, user_id)

    @staticmethod
    def log_user_action(source, action, user_id=None, details=None):
        """Log user actions (login, toggle, publish, etc.)"""
        LoggingService.info(source, f"User action: {action}", details, user_id)

    @staticmethod
    def recent(limit=50, level=None):
        """Most recent log entries, newest first"""
        try:
            LoggingService._ensure_logs_table()
            conn = Database.connect(LoggingService._db_path())
            try:
                if level:
                    rows = conn.execute("""
                        SELECT * FROM app_logs WHERE level = ?
                        ORDER BY timestamp DESC, id DESC LIMIT ?
                    """, (level.upper(), limit)).fetchall()
                else:
                    rows = conn.execute("""
                        SELECT * FROM app_logs
                        ORDER BY timestamp DESC, id DESC LIMIT ?
                    """, (limit,)).fetchall()
                return [dict(row) for row in rows]
            finally:
                conn.close()
        except Exception as e:
            print(f"Error reading logs: {e}")
            return []

    @staticmethod
    def cleanup_old_logs(days_to_keep=30):
        """Clean up old log entries"""
        try:
            cutoff_iso = (datetime.now() - timedelta(days=days_to_keep)).isoformat()

            LoggingService._ensure_logs_table()
            conn = Database.connect(LoggingService._db_path())
            try:
                cursor = conn.execute("DELETE FROM app_logs WHERE timestamp < ?", (cutoff_iso,))
                deleted_count = cursor.rowcount
                conn.commit()
            finally:
                conn.close()

            LoggingService.info('system', f"Cleaned up {deleted_count} old log entries")
            return deleted_count

        except Exception as e:
            LoggingService.error('system', f"Failed to cleanup old logs: {e}")
            return 0


def db_log(level, source, message, details=None):
    """Shorthand used by modules: db_log('error', 'publication', 'msg', {...})"""
    LoggingService.log(level, source, message, details)

