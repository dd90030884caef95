"""Application settings and validation.

The database connection can be declared two ways: an explicit
`DATABASE_URL`, or the individual `DB_*` parts that a URL is
constructed from. The explicit URL is authoritative; the parts are the
fallback. When both are present and point at different servers or
databases the divergence is reported (or refused under
`DB_CONFIG_STRICT`) rather than silently picking one.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from .errors import ConfigurationError

logger = logging.getLogger("enrollment.config")

BASE = Path(__file__).resolve().parent.parent
DEFAULT_DB_URL = f"sqlite:///{BASE / 'app.db'}"
DEFAULT_DRIVER = "mssql+pyodbc"

_PART_VARS = ("DB_DRIVER", "DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_PASSWORD")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def database_parts_from_env() -> Dict[str, Optional[str]]:
    """Collect the `DB_*` connection parts, dropping blank values."""
    parts = {}
    for var in _PART_VARS:
        val = os.getenv(var, "").strip()
        parts[var[3:].lower()] = val or None
    return parts


def build_url_from_parts(parts: Dict[str, Optional[str]]) -> Optional[URL]:
    """Construct a SQLAlchemy URL from host/database/credential parts.

    Returns `None` when no host and no database are given. A host without
    a database (or the reverse) is a configuration error.
    """
    host = parts.get("host")
    name = parts.get("name")
    if not host and not name:
        return None
    if not host or not name:
        raise ConfigurationError("DB_HOST and DB_NAME must be set together")
    port = parts.get("port")
    try:
        port_num = int(port) if port else None
    except ValueError:
        raise ConfigurationError(f"DB_PORT must be an integer, got {port!r}")
    return URL.create(
        parts.get("driver") or DEFAULT_DRIVER,
        username=parts.get("user"),
        password=parts.get("password"),
        host=host,
        port=port_num,
        database=name,
    )


def resolve_database_url(explicit: Optional[str], parts: Dict[str, Optional[str]], strict: bool = False) -> str:
    """Pick the connection URL from the two declared sources.

    Precedence: explicit URL, then the URL constructed from parts, then the
    local SQLite default. A host/database disagreement between the two
    sources is logged as a warning, or raised as `ConfigurationError` when
    `strict` is set.
    """
    constructed = build_url_from_parts(parts)
    if not explicit:
        if constructed is None:
            return DEFAULT_DB_URL
        return constructed.render_as_string(hide_password=False)
    try:
        explicit_url = make_url(explicit)
    except ArgumentError:
        raise ConfigurationError("DATABASE_URL is not a valid database URL")
    if constructed is not None:
        mismatched = [
            field for field in ("host", "database")
            if getattr(explicit_url, field) != getattr(constructed, field)
        ]
        if mismatched:
            msg = (
                "DATABASE_URL (%s) and DB_* settings (%s) disagree on %s"
                % (
                    explicit_url.render_as_string(hide_password=True),
                    constructed.render_as_string(hide_password=True),
                    ", ".join(mismatched),
                )
            )
            if strict:
                raise ConfigurationError(msg)
            logger.warning("%s; using DATABASE_URL", msg)
    return explicit


class Settings:
    ENV: str
    LOG_LEVEL: str
    DATABASE_URL: str
    DB_CONFIG_STRICT: bool
    MAX_UPLOAD_BYTES: int
    ALLOW_DEV_CORS: bool

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.DB_CONFIG_STRICT = _flag("DB_CONFIG_STRICT", "false")
        self.MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(2 * 1024 * 1024)))  # 2 MB default
        self.ALLOW_DEV_CORS = _flag("ALLOW_DEV_CORS", "true")
        self.DATABASE_URL = resolve_database_url(
            os.getenv("DATABASE_URL", "").strip() or None,
            database_parts_from_env(),
            strict=self.DB_CONFIG_STRICT,
        )
        self._validate()

    def _validate(self):
        if self.MAX_UPLOAD_BYTES <= 0:
            raise ConfigurationError("MAX_UPLOAD_BYTES must be positive")
        if self.ENV != "dev" and self.DATABASE_URL == DEFAULT_DB_URL:
            raise ConfigurationError("DATABASE_URL or DB_HOST/DB_NAME must be set in non-dev environments")


settings = Settings()
