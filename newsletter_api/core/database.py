import logging
import os
import sqlite3
import threading
from datetime import datetime, timezone

from .errors import StorageError

logger = logging.getLogger(__name__)

# Fixed width so lexical order matches chronological order
TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%S.%fZ'


def utc_timestamp(now=None):
    """Format a UTC timestamp the way subscription_date is stored"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


class SubscriberStore:
    """
    Durable store for newsletter subscribers.

    Owns a single SQLite connection for its whole lifetime. All statements
    run under one lock, so the insert-if-absent below is atomic with respect
    to every other request in the process; across processes SQLite's own
    write lock and the UNIQUE constraint keep the same guarantee.

    Usage:
        with SubscriberStore('databases/newsletter.db') as store:
            store.insert_if_absent('reader@example.com')
    """

    def __init__(self, path, table='subscribers'):
        self.path = path
        self.table = table
        self._conn = None
        self._lock = threading.Lock()

    # ===== Lifecycle =====

    def open(self):
        """Open the connection and make sure the schema exists"""
        if self._conn is not None:
            return self
        try:
            db_dir = os.path.dirname(self.path)
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)

            self._conn = sqlite3.connect(self.path, check_same_thread=False)
            self._create_schema()
            logger.info(f"Connected to SQLite database at {self.path}")
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error opening database {self.path}: {e}")
            self.close()
            raise StorageError('could not open subscriber database') from e
        return self

    def close(self):
        """Release the connection. Safe to call more than once."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("Subscriber database connection closed")

    @property
    def is_open(self):
        return self._conn is not None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _create_schema(self):
        with self._lock, self._conn:
            cursor = self._conn.cursor()
            cursor.execute(f'''
                CREATE TABLE IF NOT EXISTS {self.table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT UNIQUE NOT NULL,
                    subscription_date TEXT NOT NULL,
                    is_active BOOLEAN NOT NULL DEFAULT 1
                )
            ''')
            cursor.execute(f'''
                CREATE INDEX IF NOT EXISTS idx_{self.table}_active
                ON {self.table}(is_active, subscription_date)
            ''')
        logger.info("Subscribers table ready")

    def _connection(self):
        if self._conn is None:
            raise StorageError('subscriber database is not open')
        return self._conn

    # ===== Operations =====

    def insert_if_absent(self, email, subscription_date=None):
        """
        Insert a subscriber unless the email is already stored.

        Returns True when a row was created and False when the email already
        existed. Only the UNIQUE(email) conflict is absorbed; any other
        failure is raised as StorageError.
        """
        subscription_date = subscription_date or utc_timestamp()
        try:
            with self._lock:
                conn = self._connection()
                with conn:
                    cursor = conn.execute(f'''
                        INSERT INTO {self.table} (email, subscription_date, is_active)
                        VALUES (?, ?, 1)
                        ON CONFLICT(email) DO NOTHING
                    ''', (email, subscription_date))
                    return cursor.rowcount == 1
        except sqlite3.Error as e:
            logger.error(f"Database error in insert_if_absent: {e}")
            raise StorageError('subscriber insert failed') from e

    def list_active(self):
        """Active subscribers, most recent first"""
        try:
            with self._lock:
                cursor = self._connection().execute(f'''
                    SELECT email, subscription_date
                    FROM {self.table}
                    WHERE is_active = 1
                    ORDER BY subscription_date DESC, id DESC
                ''')
                rows = cursor.fetchall()
        except sqlite3.Error as e:
            logger.error(f"Database error in list_active: {e}")
            raise StorageError('subscriber listing failed') from e

        return [{
            'email': row[0],
            'subscription_date': row[1]
        } for row in rows]

    def count(self, email=None):
        """Number of stored rows, optionally for a single email"""
        try:
            with self._lock:
                conn = self._connection()
                if email is None:
                    cursor = conn.execute(f'SELECT COUNT(*) FROM {self.table}')
                else:
                    cursor = conn.execute(
                        f'SELECT COUNT(*) FROM {self.table} WHERE email = ?', (email,)
                    )
                return cursor.fetchone()[0]
        except sqlite3.Error as e:
            logger.error(f"Database error in count: {e}")
            raise StorageError('subscriber count failed') from e
