"""SQLAlchemy engine and connection lifetime for an ingest run."""

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.schema import CreateSchema

from dmarc_ingest.errors import ConfigError, StorageError
from dmarc_ingest.storage.schema import metadata

logger = logging.getLogger(__name__)


def create_db_engine(config):
    """Construct an engine for ``config``, mapping tables into its schema."""
    execution_options = {}
    if config.schema:
        execution_options['schema_translate_map'] = {None: config.schema}
    try:
        return create_engine(config.url, execution_options=execution_options)
    except SQLAlchemyError as e:
        raise ConfigError(f"cannot use database URL: {e}") from e


def create_schema(connection, schema=None):
    """Create the report and item tables (and enum types) if missing."""
    try:
        with connection.begin():
            if schema:
                connection.execute(CreateSchema(schema, if_not_exists=True))
            metadata.create_all(connection)
    except SQLAlchemyError as e:
        raise StorageError(f"failed to create schema: {e}") from e
    logger.info("Database tables are in place")


@contextmanager
def open_connection(engine):
    """
    Hold one connection for the duration of a run.

    The connection is closed and the engine disposed on every exit path.
    """
    try:
        connection = engine.connect()
    except SQLAlchemyError as e:
        engine.dispose()
        raise StorageError(f"failed to connect to database: {e}") from e

    try:
        yield connection
    finally:
        connection.close()
        engine.dispose()
