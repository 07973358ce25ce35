"""
Create the stations and trains tables.
The API also applies the schema at startup; run this when the database should be
prepared ahead of time.

  python scripts/init_db.py
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from railcast.database.db import close_pool, get_pool
from railcast.database.schema import apply_schema


async def init_db():
    pool = await get_pool()
    async with pool.acquire() as conn:
        executed = await apply_schema(conn)
    await close_pool()
    print(f"Database schema ready ({executed} statements).")


if __name__ == "__main__":
    import asyncio
    asyncio.run(init_db())
