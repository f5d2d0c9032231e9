import asyncio
from lms.database import engine, Base

import lms.models  # noqa: F401


async def flush_database():
    async with engine.begin() as conn:
        print("Dropping all tables...")
        await conn.run_sync(Base.metadata.drop_all)

        print("Recreating tables...")
        await conn.run_sync(Base.metadata.create_all)
        print("Database flushed.")

if __name__ == "__main__":
    asyncio.run(flush_database())
