#!/usr/bin/env python3
"""
Migration runner for deployment.
Runs Alembic migrations to upgrade database schema.
"""
import logging
import subprocess
import sys

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger("run_migration")


def run_migrations() -> int:
    """Run alembic upgrade head."""
    logger.info("Running database migrations...")

    try:
        result = subprocess.run(
            ["alembic", "upgrade", "head"],
            check=True,
            capture_output=True,
            text=True
        )
    except subprocess.CalledProcessError as e:
        logger.error("Migration failed")
        logger.error(f"STDOUT: {e.stdout}")
        logger.error(f"STDERR: {e.stderr}")
        return 1
    except FileNotFoundError:
        logger.error("alembic executable not found; install the project first")
        return 1

    logger.info(result.stdout)
    if result.stderr:
        logger.info(result.stderr)

    logger.info("Migrations completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(run_migrations())
