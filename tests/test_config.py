"""
Tests for database configuration loading.
"""

import pytest

from dmarc_ingest.config import DatabaseConfig
from dmarc_ingest.errors import ConfigError


class TestFromMapping:
    """Building configuration from key/value settings."""

    def test_postgres_parts(self):
        config = DatabaseConfig.from_mapping({
            'PG_HOST': 'db.example', 'PG_PORT': '5433', 'PG_DATABASE': 'dmarc',
            'PG_USER': 'loader', 'PG_PASSWORD': 's3cret',
        })
        assert config.url.drivername == 'postgresql+psycopg'
        assert config.url.host == 'db.example'
        assert config.url.port == 5433
        assert config.url.database == 'dmarc'
        assert config.url.username == 'loader'
        assert config.url.password == 's3cret'
        assert config.schema == 'dmarc'

    def test_postgres_fallback_names(self):
        config = DatabaseConfig.from_mapping({
            'POSTGRES_HOST': 'h', 'POSTGRES_DB': 'd', 'POSTGRES_USER': 'u',
        })
        assert (config.url.host, config.url.database, config.url.username) == ('h', 'd', 'u')

    def test_unix_socket_host(self):
        config = DatabaseConfig.from_mapping({
            'PG_HOST': '/var/run/postgresql', 'PG_PORT': '5432',
            'PG_DATABASE': 'dmarc', 'PG_USER': 'loader',
        })
        assert config.url.host is None
        assert config.url.port is None
        assert config.url.query['host'] == '/var/run/postgresql'

    @pytest.mark.parametrize('port', ['postgres', '70000'])
    def test_invalid_port_is_ignored(self, port):
        config = DatabaseConfig.from_mapping({
            'PG_HOST': 'h', 'PG_PORT': port, 'PG_DATABASE': 'd', 'PG_USER': 'u',
        })
        assert config.url.port is None

    def test_schema_can_be_disabled(self):
        config = DatabaseConfig.from_mapping({
            'PG_DATABASE': 'd', 'PG_USER': 'u', 'PG_SCHEMA': '',
        })
        assert config.schema is None

    def test_database_url(self):
        config = DatabaseConfig.from_mapping({'DMARC_DATABASE_URL': 'sqlite:///x.db'})
        assert config.url.drivername == 'sqlite'
        assert config.schema is None

    def test_invalid_database_url(self):
        with pytest.raises(ConfigError):
            DatabaseConfig.from_mapping({'DMARC_DATABASE_URL': 'not a url'})

    def test_missing_credentials(self):
        with pytest.raises(ConfigError):
            DatabaseConfig.from_mapping({'PG_HOST': 'h'})


class TestLoad:
    """Layering env file, environment and overrides."""

    def test_env_file(self, tmp_path):
        env_file = tmp_path / 'db.env'
        env_file.write_text('PG_DATABASE=dmarc\nPG_USER=loader\nPG_HOST=file-host\n')
        config = DatabaseConfig.load(str(env_file), environ={})
        assert config.url.host == 'file-host'

    def test_environment_overrides_file(self, tmp_path):
        env_file = tmp_path / 'db.env'
        env_file.write_text('PG_DATABASE=dmarc\nPG_USER=loader\nPG_HOST=file-host\n')
        config = DatabaseConfig.load(str(env_file), environ={'PG_HOST': 'env-host'})
        assert config.url.host == 'env-host'

    def test_overrides_win(self, tmp_path):
        env_file = tmp_path / 'db.env'
        env_file.write_text('PG_DATABASE=dmarc\nPG_USER=loader\n')
        config = DatabaseConfig.load(str(env_file), environ={},
                                     overrides={'DMARC_DATABASE_URL': 'sqlite://'})
        assert config.url.drivername == 'sqlite'

    def test_missing_env_file(self, tmp_path):
        with pytest.raises(ConfigError):
            DatabaseConfig.load(str(tmp_path / 'absent.env'), environ={})
