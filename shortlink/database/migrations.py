"""Versioned schema migrations for the PostgreSQL store."""

import logging
from dataclasses import dataclass
from typing import List, Optional

import asyncpg


# Arbitrary constant shared by every process that migrates this schema
MIGRATION_LOCK_ID = 0x5348524C


@dataclass(frozen=True)
class Migration:
    """A single forward-only schema change."""

    version: int
    name: str
    sql: str


MIGRATIONS: List[Migration] = [
    Migration(
        version=1,
        name="create_url",
        sql="""
        CREATE TABLE IF NOT EXISTS url (
            id SERIAL PRIMARY KEY,
            name TEXT NOT NULL,
            short_url VARCHAR NOT NULL UNIQUE,
            created_at TIMESTAMP DEFAULT (now() AT TIME ZONE 'utc'),
            created_by VARCHAR NOT NULL
        );
        """,
    ),
    Migration(
        version=2,
        name="index_url_created_at",
        sql="CREATE INDEX IF NOT EXISTS idx_url_created_at ON url (created_at);",
    ),
]

CREATE_MIGRATIONS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    name VARCHAR NOT NULL,
    applied_at TIMESTAMP NOT NULL DEFAULT (now() AT TIME ZONE 'utc')
);
"""


def current_version(migrations: Optional[List[Migration]] = None) -> int:
    """Highest known schema version."""
    migrations = MIGRATIONS if migrations is None else migrations
    return max((m.version for m in migrations), default=0)


async def apply_migrations(
    conn: asyncpg.Connection,
    migrations: Optional[List[Migration]] = None,
    logger: Optional[logging.Logger] = None,
) -> List[int]:
    """Apply pending migrations in a single transaction.

    An advisory lock serializes concurrent callers, so each version is applied
    exactly once even when several processes start together.

    Args:
        conn: Open connection
        migrations: Migrations to apply (defaults to MIGRATIONS)
        logger: Optional logger

    Returns:
        Versions applied by this call, in order
    """
    logger = logger or logging.getLogger(__name__)
    migrations = sorted(MIGRATIONS if migrations is None else migrations, key=lambda m: m.version)

    applied: List[int] = []
    async with conn.transaction():
        await conn.execute("SELECT pg_advisory_xact_lock($1)", MIGRATION_LOCK_ID)
        await conn.execute(CREATE_MIGRATIONS_TABLE_SQL)

        rows = await conn.fetch("SELECT version FROM schema_migrations")
        done = {row["version"] for row in rows}

        for migration in migrations:
            if migration.version in done:
                continue
            logger.info(f"Applying migration {migration.version}: {migration.name}")
            await conn.execute(migration.sql)
            await conn.execute(
                "INSERT INTO schema_migrations (version, name) VALUES ($1, $2)",
                migration.version,
                migration.name,
            )
            applied.append(migration.version)

    if applied:
        logger.info(f"Schema migrated to version {applied[-1]}")
    else:
        logger.debug("Schema already at current version")
    return applied
