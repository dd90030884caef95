"""CLI script to bulk-insert students from a CSV file in a single statement.

Usage:
  python scripts/upload_students.py students.csv --url sqlite:///app.db
  python scripts/upload_students.py students.csv --host sql.example.net \
      --database school --user loader --password ...

Connection settings fall back to DATABASE_URL / DB_* environment
variables. Exit codes: 0 inserted or nothing to insert, 1 database
error, 2 configuration error, 3 unreadable or invalid input file.
"""
import sys
import argparse
import logging
import os
import pathlib
from typing import List, Optional
# Ensure `backend/` is on sys.path so package imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

EXIT_OK = 0
EXIT_STORE_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_INPUT_ERROR = 3


def _connection_url(args) -> str:
    """Resolve the target URL from CLI flags layered over the environment."""
    from enrollment_app.config import database_parts_from_env, resolve_database_url
    parts = database_parts_from_env()
    for key in ('driver', 'host', 'port', 'user', 'password'):
        val = getattr(args, key)
        if val:
            parts[key] = str(val)
    if args.database:
        parts['name'] = args.database
    explicit = args.url or os.getenv('DATABASE_URL', '').strip() or None
    strict = args.strict or os.getenv('DB_CONFIG_STRICT', 'false').lower() in ('1', 'true', 'yes', 'on')
    return resolve_database_url(explicit, parts, strict=strict)


def main(argv: Optional[List[str]] = None) -> int:
    """Read the CSV, build one INSERT payload and execute it.

    Results are printed to stdout for a quick CLI feedback loop; the
    return value is the process exit code.
    """
    parser = argparse.ArgumentParser(description='Bulk upload students from a CSV file')
    parser.add_argument('csv_path', help='CSV file with FirstName, LastName, EnrollmentDate columns')
    parser.add_argument('--url', help='SQLAlchemy database URL (takes precedence over --host/--database)')
    parser.add_argument('--driver', help='SQLAlchemy driver for --host, e.g. mssql+pyodbc')
    parser.add_argument('--host')
    parser.add_argument('--port', type=int)
    parser.add_argument('--database')
    parser.add_argument('--user')
    parser.add_argument('--password')
    parser.add_argument('--strict', action='store_true', help='fail if --url and --host/--database disagree')
    parser.add_argument('--deduplicate', action='store_true', help='skip rows matching an existing student')
    parser.add_argument('--dry-run', action='store_true', help='print the statement instead of executing it')
    args = parser.parse_args(argv)

    logging.basicConfig(level=os.getenv('LOG_LEVEL', 'WARNING'))

    from enrollment_app.errors import ConfigurationError, EnrollmentAppError, EmptyPayloadError
    from enrollment_app import services

    path = pathlib.Path(args.csv_path)
    try:
        content = path.read_bytes()
    except OSError as e:
        print(f'Cannot read {path}: {e}')
        return EXIT_INPUT_ERROR

    try:
        url = _connection_url(args)
    except ConfigurationError as e:
        print(f'Configuration error: {e}')
        return EXIT_CONFIG_ERROR

    from sqlmodel import Session
    from enrollment_app.database import make_engine
    from sqlalchemy.exc import ArgumentError, NoSuchModuleError
    try:
        engine = make_engine(url)
    except (ArgumentError, NoSuchModuleError, ImportError) as e:
        print(f'Configuration error: cannot create database engine: {e}')
        return EXIT_CONFIG_ERROR

    try:
        with Session(engine) as session:
            svc = services.BulkInsertService(session)
            try:
                prepared = svc.prepare(content, path.name if path.suffix else f'{path.name}.csv', deduplicate=args.deduplicate)
            except ValueError as e:
                print(f'Error reading {path}: {e}')
                return EXIT_INPUT_ERROR
            for err in prepared['errors']:
                print(f"Row {err['index'] + 1}: {err['error']}")
            if args.dry_run:
                print(f"{prepared['rows']} rows ready, {prepared['skipped']} skipped, {len(prepared['errors'])} errors")
                if prepared['payload']:
                    print(services.build_insert_statement(prepared['payload']))
                return EXIT_OK
            try:
                inserted = svc.insert_payload(prepared['payload'])
            except EmptyPayloadError:
                print('Nothing to insert')
                return EXIT_INPUT_ERROR if prepared['errors'] else EXIT_OK
            print(f'Inserted {inserted} rows into {services.STUDENT_TABLE}')
            return EXIT_OK
    except ConfigurationError as e:
        print(f'Configuration error: {e}')
        return EXIT_CONFIG_ERROR
    except EnrollmentAppError as e:
        print(f'Database error: {e}')
        return EXIT_STORE_ERROR
    finally:
        engine.dispose()


if __name__ == '__main__':
    sys.exit(main())
