"""
Migration runner for versioned ledger schema changes.

Migrations live next to this module as ``{version}_{name}.py`` and define:
- VERSION: int
- NAME: str
- upgrade(conn: Connection) -> None
"""

import importlib
import logging
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class Migration:
    version: int
    name: str
    upgrade: Callable[[sqlite3.Connection], None]


def get_all_migrations() -> list[Migration]:
    """Load all migrations of this package, sorted by version."""
    migrations = []
    migrations_dir = Path(__file__).parent

    for py_file in sorted(migrations_dir.glob("[0-9][0-9][0-9]_*.py")):
        module = importlib.import_module(f"{__package__}.{py_file.stem}")
        migrations.append(Migration(version=module.VERSION, name=module.NAME, upgrade=module.upgrade))

    return sorted(migrations, key=lambda m: m.version)


class MigrationRunner:
    """
    Applies pending migrations in version order.

    Applied versions are recorded in the ``migrations`` table.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS migrations (
                version INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                applied_at TEXT NOT NULL
            )
        """
        )
        self.conn.commit()

    def get_applied_versions(self) -> set[int]:
        cursor = self.conn.execute("SELECT version FROM migrations")
        return {row[0] for row in cursor.fetchall()}

    def apply_migration(self, migration: Migration) -> None:
        logger.info(f"Applying migration {migration.version}: {migration.name}")

        try:
            migration.upgrade(self.conn)
            now = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
            self.conn.execute(
                "INSERT INTO migrations (version, name, applied_at) VALUES (?, ?, ?)",
                (migration.version, migration.name, now),
            )
            self.conn.commit()
        except Exception as e:
            self.conn.rollback()
            logger.error(f"Migration {migration.version} failed: {e}")
            raise

    def run_pending(self) -> list[int]:
        """Run all pending migrations. Returns the applied versions."""
        applied = self.get_applied_versions()
        pending = [m for m in get_all_migrations() if m.version not in applied]

        for migration in pending:
            self.apply_migration(migration)

        if pending:
            logger.info(f"Applied {len(pending)} migration(s): {[m.version for m in pending]}")
        return [m.version for m in pending]
