"""
Persistent logging for the newsletter service.
Writes structured entries to the LOGS_TABLE table so subscription activity
survives container rebuilds. Falls back to the stdout logger on failure.
"""

import json
import logging
import sqlite3
import traceback
from contextlib import closing
from datetime import datetime, timedelta, timezone

from flask import current_app, has_app_context, has_request_context, request

from .config import Config

stdout_logger = logging.getLogger(__name__)


def _dict_factory(cursor, row):
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


class LoggingService:
    """Application-wide persistent logging"""

    @staticmethod
    def _setting(key):
        if has_app_context():
            value = current_app.config.get(key)
            if value:
                return value
        return getattr(Config, key)

    @staticmethod
    def _connect():
        """Connection to LOG_DB with the logs table in place"""
        conn = sqlite3.connect(LoggingService._setting('LOG_DB'))
        try:
            LoggingService._ensure_logs_table(conn)
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    @staticmethod
    def _ensure_logs_table(conn):
        """Ensure the logs table exists"""
        table = LoggingService._setting('LOGS_TABLE')
        cursor = conn.cursor()
        cursor.execute(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp TEXT NOT NULL,
                level TEXT NOT NULL,
                source TEXT NOT NULL,
                message TEXT NOT NULL,
                details TEXT,
                ip_address TEXT,
                user_agent TEXT,
                request_path TEXT
            )
        """)
        cursor.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{table}_timestamp
            ON {table}(timestamp DESC)
        """)
        cursor.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{table}_level
            ON {table}(level)
        """)

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None

        ip_address = request.remote_addr
        user_agent = request.headers.get('User-Agent', '')[:500]
        return ip_address, user_agent, request.path

    @staticmethod
    def log(level, source, message, details=None, timestamp=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (newsletter, admin, system, ...)
            message (str): Main log message
            details (str/dict): Additional details (JSON-encoded if dict)
            timestamp (datetime): When it happened, defaults to now
        """
        level = level.upper()
        stdout_logger.log(getattr(logging, level, logging.INFO), f"[{source}] {message}")

        ip_address, user_agent, request_path = LoggingService._get_request_context()
        if isinstance(details, dict):
            details = json.dumps(details, default=str)
        timestamp = timestamp or datetime.now(timezone.utc)

        try:
            with closing(LoggingService._connect()) as conn, conn:
                conn.execute(f"""
                    INSERT INTO {LoggingService._setting('LOGS_TABLE')}
                    (timestamp, level, source, message, details, ip_address, user_agent, request_path)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    timestamp.isoformat(), level, source, message,
                    details, ip_address, user_agent, request_path
                ))
        except sqlite3.Error as e:
            # Persistent log is best effort; stdout already has the entry
            stdout_logger.warning(f"Logging service error: {e}")

    @staticmethod
    def info(source, message, details=None):
        LoggingService.log('INFO', source, message, details)

    @staticmethod
    def warning(source, message, details=None):
        LoggingService.log('WARNING', source, message, details)

    @staticmethod
    def error(source, message, details=None):
        LoggingService.log('ERROR', source, message, details)

    @staticmethod
    def log_error_with_traceback(source, error, details=None):
        """Log error with full traceback"""
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc()
        }
        if details:
            error_details['additional_details'] = details

        LoggingService.error(source, f"Exception occurred: {type(error).__name__}", error_details)

    @staticmethod
    def get_recent_logs(limit=50, level=None, source=None):
        """Most recent entries first, optionally filtered by level and source"""
        query = (
            "SELECT id, timestamp, level, source, message, details, request_path "
            f"FROM {LoggingService._setting('LOGS_TABLE')}"
        )
        clauses, params = [], []
        if level:
            clauses.append("level = ?")
            params.append(level.upper())
        if source:
            clauses.append("source = ?")
            params.append(source)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)

        try:
            with closing(LoggingService._connect()) as conn:
                conn.row_factory = _dict_factory
                return conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            stdout_logger.debug(f"Could not query recent logs: {e}")
            return []

    @staticmethod
    def cleanup_old_logs(days_to_keep=30):
        """Clean up old log entries"""
        cutoff_iso = (datetime.now(timezone.utc) - timedelta(days=days_to_keep)).isoformat()

        try:
            with closing(LoggingService._connect()) as conn, conn:
                cursor = conn.execute(
                    f"DELETE FROM {LoggingService._setting('LOGS_TABLE')} WHERE timestamp < ?",
                    (cutoff_iso,)
                )
                deleted_count = cursor.rowcount
        except sqlite3.Error as e:
            LoggingService.error('system', f"Failed to cleanup old logs: {e}")
            return 0

        LoggingService.info('system', f"Cleaned up {deleted_count} old log entries")
        return deleted_count
