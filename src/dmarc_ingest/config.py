"""
Database configuration for the DMARC ingester.

Credentials come from an env file (loaded with python-dotenv) layered
under the process environment. Either a complete SQLAlchemy URL is given
in DMARC_DATABASE_URL, or the PostgreSQL connection is assembled from
PG_HOST / PG_PORT / PG_DATABASE / PG_USER / PG_PASSWORD (POSTGRES_* names
are accepted too).
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import dotenv_values
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from dmarc_ingest.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = '.env'
DEFAULT_SCHEMA = 'dmarc'
DRIVER = 'postgresql+psycopg'


def _first(values, *names):
    for name in names:
        value = values.get(name)
        if value:
            return value
    return None


def _parse_port(text):
    if text is None:
        return None
    try:
        port = int(text)
    except ValueError:
        logger.warning("Ignoring invalid database port %r", text)
        return None
    if not 0 < port < 65536:
        logger.warning("Ignoring out of range database port %r", text)
        return None
    return port


@dataclass(frozen=True)
class DatabaseConfig:
    """Where to store reports: a SQLAlchemy URL plus an optional schema."""

    url: URL
    schema: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "DatabaseConfig":
        url_text = values.get('DMARC_DATABASE_URL')
        if url_text:
            try:
                url = make_url(url_text)
            except ArgumentError as e:
                raise ConfigError(f"invalid database URL: {e}") from e
            return cls(url=url, schema=values.get('PG_SCHEMA') or None)

        database = _first(values, 'PG_DATABASE', 'POSTGRES_DB', 'PG_DB')
        user = _first(values, 'PG_USER', 'POSTGRES_USER')
        if not database or not user:
            raise ConfigError("database name and user are required "
                              "(PG_DATABASE / PG_USER or DMARC_DATABASE_URL)")

        host = _first(values, 'PG_HOST', 'POSTGRES_HOST')
        port = _parse_port(_first(values, 'PG_PORT', 'POSTGRES_PORT'))
        query = {}
        if host and host.startswith('/'):
            # Unix socket directory
            query['host'] = host
            host = None
            port = None

        url = URL.create(
            DRIVER,
            username=user,
            password=_first(values, 'PG_PASSWORD', 'POSTGRES_PASSWORD'),
            host=host,
            port=port,
            database=database,
            query=query,
        )
        schema = values.get('PG_SCHEMA', DEFAULT_SCHEMA) or None
        return cls(url=url, schema=schema)

    @classmethod
    def load(cls, env_file=None, environ=None, overrides=None) -> "DatabaseConfig":
        """
        Load configuration from an env file and the environment.

        Args:
            env_file: Path to a dotenv file. Defaults to ./.env when present.
            environ: Mapping overriding file values (defaults to os.environ)
            overrides: Values given on the command line, applied last

        Raises:
            ConfigError: If the env file is missing or incomplete
        """
        values = {}
        if env_file is not None:
            if not os.path.isfile(env_file):
                raise ConfigError(f"configuration file not found: {env_file}")
            values.update(dotenv_values(env_file))
        elif os.path.isfile(DEFAULT_ENV_FILE):
            values.update(dotenv_values(DEFAULT_ENV_FILE))

        values.update(os.environ if environ is None else environ)
        values.update(overrides or {})
        config = cls.from_mapping(values)
        logger.debug("Database: %s (schema %s)",
                     config.url.render_as_string(hide_password=True), config.schema)
        return config
