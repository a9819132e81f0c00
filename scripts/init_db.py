"""Create the kpis and kpi_alerts tables.

Usage:
    python scripts/init_db.py           # create missing tables
    python scripts/init_db.py --reset   # drop and recreate (destroys KPI history)
"""

import argparse
import asyncio
import logging

from kpi_pulse.db.connection import engine
from kpi_pulse.db.models import Base

logger = logging.getLogger("init_db")


async def init(reset: bool = False) -> None:
    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
            logger.warning("Dropped tables: %s", ", ".join(Base.metadata.tables))
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables ready: %s", ", ".join(Base.metadata.tables))
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--reset", action="store_true", help="drop existing tables first")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(init(reset=args.reset))
