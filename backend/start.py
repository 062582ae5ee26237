"""Startup script for production deployment.

On a fresh database (no tables), creates all tables from models and stamps
Alembic to head. On an existing database, runs Alembic migrations normally.
"""

import logging
import subprocess
import sys

from sqlalchemy import inspect

from bizcoach.db.base import Base
from bizcoach.db.session import engine
from bizcoach.models import CoachingSession, Project, User  # noqa: F401

logger = logging.getLogger("bizcoach.start")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    tables = inspect(engine).get_table_names()

    if "users" not in tables:
        logger.info("Fresh database detected, creating all tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Tables created. Stamping Alembic to head...")
        subprocess.check_call([sys.executable, "-m", "alembic", "stamp", "head"])
    else:
        logger.info("Existing database, running migrations...")
        subprocess.check_call([sys.executable, "-m", "alembic", "upgrade", "head"])
    logger.info("Database ready.")


if __name__ == "__main__":
    main()
