import logging
from pathlib import Path

import asyncpg

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"


async def apply_schema(conn: asyncpg.Connection) -> int:
    """Run every statement in schema.sql; returns how many were executed."""
    executed = 0
    for stmt in split_sql(SCHEMA_PATH.read_text()):
        try:
            await conn.execute(stmt)
            executed += 1
            logger.debug("Schema OK: %s", stmt[:60].replace("\n", " "))
        except asyncpg.exceptions.DuplicateObjectError:
            logger.debug("Schema skip (exists): %s", stmt[:50].replace("\n", " "))
    return executed


def split_sql(sql: str) -> list[str]:
    """Split SQL into single statements (by semicolon), keep constraint blocks intact."""
    statements = []
    current = []
    for line in sql.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("--"):
            continue
        current.append(line)
        if stripped.endswith(";"):
            statements.append("\n".join(current))
            current = []
    if current:
        statements.append("\n".join(current))
    return statements
