"""
Deploy-time database setup: create the MySQL database if needed, then apply
the versioned Alembic migrations. The web process never alters the schema.

    python -m app.services.database_initialization
"""
import logging
import sys
from pathlib import Path

import mysql.connector
from mysql.connector import Error
from alembic import command
from alembic.config import Config

from app.config import settings

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def create_database() -> bool:
    """Create the database if it doesn't exist"""
    try:
        # Connect to MySQL server (without specifying database)
        connection = mysql.connector.connect(
            host=settings.DB_HOST,
            port=settings.DB_PORT,
            user=settings.DB_USER,
            password=settings.DB_PASSWORD
        )

        cursor = connection.cursor()
        cursor.execute(
            f"CREATE DATABASE IF NOT EXISTS `{settings.DB_NAME}` "
            f"CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        logger.info(f"Database '{settings.DB_NAME}' created or already exists")

        cursor.close()
        connection.close()
        return True

    except Error as e:
        logger.error(f"Error creating database: {e}")
        return False


def alembic_config() -> Config:
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", settings.DATABASE_URL.replace("%", "%%"))
    return config


def run_migrations(revision: str = "head") -> None:
    """Apply Alembic migrations up to `revision`"""
    command.upgrade(alembic_config(), revision)
    logger.info(f"Database migrated to {revision}")


def initialize_database() -> bool:
    """Initialize the complete database setup"""
    logger.info("Starting database initialization...")

    if settings.DATABASE_URL.startswith("mysql") and not create_database():
        logger.error("Failed to create database")
        return False

    try:
        run_migrations()
    except Exception as e:
        logger.error(f"Error running migrations: {e}")
        return False

    logger.info("Database initialization completed successfully!")
    return True


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    sys.exit(0 if initialize_database() else 1)
