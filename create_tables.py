"""
Script to create the database tables.

Creates every table defined in the models. Pass --drop to drop them first.
"""
import asyncio
import sys

from ielts_backend.database import engine, init_models
from ielts_backend.models.base import Base
from ielts_backend.models.user import User  # noqa: F401


async def drop_all_tables():
    """Drop all tables in the database (for testing)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    print("All tables dropped!")


async def main(drop: bool = False):
    """Main entry point."""
    if drop:
        await drop_all_tables()
    print("Creating database tables...")
    await init_models()
    await engine.dispose()
    print("Done!")


if __name__ == "__main__":
    asyncio.run(main(drop="--drop" in sys.argv[1:]))
