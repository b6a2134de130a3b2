"""
Database module for storing traffic density reports.

Each analysed frame produces one row in `reports`, mirroring the external
report record plus a `notified` flag. Schema versioning ensures automatic
migration when the schema changes.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import time
from typing import Any, Dict, List, Optional

from models.report import DensityReport

# Schema version - increment when schema changes
EXPECTED_SCHEMA_VERSION = 1


class Database:
    """
    Local report store.

    Tables:
    - schema_meta: tracks schema version
    - reports: one row per DensityReport

    Tables from an older schema version are dropped on initialize().
    """

    def __init__(self, local_database_path: str):
        """
        Args:
            local_database_path: Path to the SQLite database file.
        """
        self.local_database_path = local_database_path
        self.conn: Optional[sqlite3.Connection] = None

        db_dir = os.path.dirname(local_database_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        logging.info(f"Database initialized at {local_database_path}")

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self.conn is None:
            self.conn = sqlite3.connect(self.local_database_path)
        return self.conn

    def _get_schema_version(self) -> Optional[int]:
        try:
            cursor = self._get_connection().cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_meta'"
            )
            if cursor.fetchone() is None:
                return None

            cursor.execute("SELECT schema_version FROM schema_meta LIMIT 1")
            row = cursor.fetchone()
            return row[0] if row else None
        except sqlite3.Error:
            return None

    def _drop_old_tables(self) -> None:
        cursor = self._get_connection().cursor()
        for table in ("reports", "schema_meta"):
            cursor.execute(f"DROP TABLE IF EXISTS {table}")
        self._get_connection().commit()

    def _create_schema(self) -> None:
        cursor = self._get_connection().cursor()

        cursor.execute("""
            CREATE TABLE schema_meta (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                schema_version INTEGER NOT NULL,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)

        cursor.execute("""
            CREATE TABLE reports (
                id INTEGER PRIMARY KEY,
                site_name TEXT NOT NULL,
                vehicles_detected INTEGER NOT NULL,
                density REAL NOT NULL,
                condition_traffic TEXT NOT NULL,
                timestamp INTEGER NOT NULL,
                timestamp_iso TEXT NOT NULL,
                notified INTEGER DEFAULT 0
            )
        """)

        cursor.execute("CREATE INDEX idx_reports_site_ts ON reports(site_name, timestamp)")
        cursor.execute(
            "INSERT INTO schema_meta (id, schema_version) VALUES (1, ?)",
            (EXPECTED_SCHEMA_VERSION,)
        )

        self._get_connection().commit()
        logging.info(f"Created schema version {EXPECTED_SCHEMA_VERSION}")

    def initialize(self) -> None:
        """
        Initialize the database schema.

        If schema_meta is missing or the version doesn't match
        EXPECTED_SCHEMA_VERSION, drops old tables and creates a fresh schema.
        """
        try:
            current_version = self._get_schema_version()

            if current_version != EXPECTED_SCHEMA_VERSION:
                if current_version is not None:
                    logging.warning(
                        f"Schema version mismatch: found {current_version}, "
                        f"expected {EXPECTED_SCHEMA_VERSION}. Dropping old tables."
                    )
                else:
                    logging.info("No schema found, creating fresh database.")

                self._drop_old_tables()
                self._create_schema()
            else:
                logging.info(f"Schema version {current_version} is current")

        except sqlite3.Error as e:
            logging.error(f"Database initialization error: {e}")
            raise

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def add_report(self, report: DensityReport, notified: bool = False) -> Optional[int]:
        """
        Add a report to the database.

        Returns:
            ID of the inserted record, or None on error.
        """
        record = report.to_record()
        try:
            cursor = self._get_connection().cursor()
            cursor.execute("""
                INSERT INTO reports (
                    site_name, vehicles_detected, density, condition_traffic,
                    timestamp, timestamp_iso, notified
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                record["site_name"],
                record["vehicles_detected"],
                record["density"],
                record["condition_traffic"],
                record["timestamp"],
                record["timestamp_iso"],
                1 if notified else 0,
            ))
            self._get_connection().commit()
            return cursor.lastrowid

        except sqlite3.Error as e:
            logging.error(f"Error adding report: {e}")
            return None

    def mark_notified(self, report_id: int) -> None:
        try:
            self._get_connection().execute(
                "UPDATE reports SET notified = 1 WHERE id = ?", (report_id,)
            )
            self._get_connection().commit()
        except sqlite3.Error as e:
            logging.error(f"Error marking report {report_id} as notified: {e}")

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def recent_reports(self, site_name: Optional[str] = None, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Get the most recent reports, newest first.

        Args:
            site_name: Restrict to one site (default: all sites).
            limit: Maximum number of reports to return.

        Returns:
            List of record dictionaries (the external record plus id and notified).
        """
        try:
            self._get_connection().row_factory = sqlite3.Row
            cursor = self._get_connection().cursor()

            if site_name is None:
                cursor.execute(
                    "SELECT * FROM reports ORDER BY timestamp DESC, id DESC LIMIT ?",
                    (limit,)
                )
            else:
                cursor.execute(
                    "SELECT * FROM reports WHERE site_name = ? "
                    "ORDER BY timestamp DESC, id DESC LIMIT ?",
                    (site_name, limit)
                )

            rows = [dict(row) for row in cursor.fetchall()]
            for row in rows:
                row["notified"] = bool(row["notified"])
            return rows

        except sqlite3.Error as e:
            logging.error(f"Error getting recent reports: {e}")
            return []
        finally:
            if self.conn:
                self.conn.row_factory = None

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def cleanup_old_data(self, retention_days: int = 60, now: Optional[float] = None) -> None:
        """Remove reports older than the retention period (relative to now, default: current time)."""
        try:
            cursor = self._get_connection().cursor()
            now = time.time() if now is None else now
            cutoff = int(now - retention_days * 86400)
            cursor.execute("DELETE FROM reports WHERE timestamp < ?", (cutoff,))
            deleted = cursor.rowcount
            self._get_connection().commit()

            if deleted > 0:
                logging.info(f"Cleaned up {deleted} reports older than {retention_days} days")

        except sqlite3.Error as e:
            logging.error(f"Error cleaning up old data: {e}")

    def close(self) -> None:
        """Close database connection."""
        if self.conn is not None:
            self.conn.close()
            self.conn = None
            logging.info("Database connection closed")
