import asyncio
import sys
import os

# Add backend/ to PYTHONPATH so rental_quotes.* can be imported
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from rental_quotes.core.database import engine
from rental_quotes.models import Base

async def reset():
    print("Connecting to the database, dropping tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        print("Tables dropped. Creating tables for quotes, catalog and assessments...")
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("Rental database reset completed!")

if __name__ == "__main__":
    asyncio.run(reset())
