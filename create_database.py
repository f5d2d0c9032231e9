import asyncio
from lms.database import engine, Base

# Importing the models registers every table on Base.metadata
import lms.models  # noqa: F401


async def create_tables():
    async with engine.begin() as conn:
        print("Creating database tables...")
        await conn.run_sync(Base.metadata.create_all)
        print("All tables created successfully!")


if __name__ == "__main__":
    asyncio.run(create_tables())
