"""
DMARC Ingest Command-Line Interface

This module provides the command-line interface for the DMARC ingester,
handling argument parsing and the main program flow.
"""

import argparse
import logging
import sys

from dmarc_ingest.config import DatabaseConfig
from dmarc_ingest.errors import IngestError
from dmarc_ingest.ingest import Ingester, IngestPolicy
from dmarc_ingest.reporting.text_report import generate_summary
from dmarc_ingest.storage.connection import create_db_engine, create_schema, open_connection

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Load DMARC aggregate reports (.xml, .xml.gz, .zip) into a database')
    parser.add_argument('files', nargs='+', metavar='FILE', help='DMARC report files')
    parser.add_argument('--config', '-c', help='Env file with database settings (default: ./.env)')
    parser.add_argument('--database-url', help='SQLAlchemy database URL (overrides the config)')
    parser.add_argument('--schema', help='Database schema holding the tables ("" for none)')
    parser.add_argument('--init-db', action='store_true', help='Create the tables before loading')
    parser.add_argument('--skip-storage-errors', action='store_true',
                        help='Continue with the next report when a database write fails')
    parser.add_argument('--fail-fast', action='store_true',
                        help='Stop at the first failure of any kind')
    parser.add_argument('--debug', '-d', action='store_true', help='Log decoded reports')
    parser.add_argument('--verbose', '-v', action='count', default=0, help='Verbose output')
    parser.add_argument('--quiet', '-q', action='store_true', help='Do not print the run summary')
    return parser.parse_args(argv)


def configure_logging(verbose=0, debug=False):
    if debug or verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def main(argv=None):
    """Main function to load DMARC reports."""
    args = parse_args(argv)
    configure_logging(args.verbose, args.debug)

    overrides = {}
    if args.database_url:
        overrides['DMARC_DATABASE_URL'] = args.database_url
    if args.schema is not None:
        overrides['PG_SCHEMA'] = args.schema

    policy = IngestPolicy(
        skip_storage_errors=args.skip_storage_errors,
        fail_fast=args.fail_fast,
        debug=args.debug,
    )

    try:
        config = DatabaseConfig.load(args.config, overrides=overrides)
        engine = create_db_engine(config)
        with open_connection(engine) as connection:
            if args.init_db:
                create_schema(connection, config.schema)
            ingester = Ingester(connection, policy)
            ingester.run(args.files)
    except IngestError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(generate_summary(ingester.results, ingester.aborted))

    return 1 if ingester.aborted else 0


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
