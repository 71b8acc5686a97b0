"""
SQLAlchemy engine bootstrap for the destination databases.

The issue and question tables may live in different databases on the same
server, so engines are created per URL rather than as a module-level
singleton.
"""

import logging
from typing import Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError

from feed_ingestor.errors import StorageError

logger = logging.getLogger(__name__)


def create_db_engine(database_url: Union[str, URL], **engine_kwargs) -> Engine:
    """
    Create an engine and verify the database answers.

    Args:
        database_url: SQLAlchemy URL, as a string or a URL object
        **engine_kwargs: Extra arguments for ``create_engine``

    Returns:
        A connected Engine

    Raises:
        StorageError: If the engine cannot be created or ``SELECT 1`` fails
    """
    engine_kwargs.setdefault("pool_pre_ping", True)
    try:
        engine = create_engine(database_url, **engine_kwargs)
    except (SQLAlchemyError, ImportError) as e:
        raise StorageError(f"Error on initializing database connection: {e}") from e

    logger.info("Testing database connection")
    ping(engine)
    logger.info("Database connection established")
    return engine


def ping(engine: Engine) -> None:
    """
    Run ``SELECT 1`` against the engine.

    Raises:
        StorageError: If the database cannot be reached
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise StorageError(f"Error on database connection: {e}") from e
