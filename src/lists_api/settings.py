from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

BACKENDS = {"memory", "sqlite", "mongo"}


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables (and a .env file if present).

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default), 'sqlite' or 'mongo'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - MONGO_URI: MongoDB connection string (required when PERSISTENCE_BACKEND=mongo)
    - MONGO_DB_NAME: MongoDB database name. Default 'todos'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - HOST: interface the server binds to. Default '127.0.0.1'
    - PORT: port the server listens on. Default 5000
    - LOG_LEVEL: root logging level. Default 'INFO'
    """

    persistence_backend: str
    sqlite_db_path: str
    mongo_uri: Optional[str]
    mongo_db_name: str
    cors_allow_origins: List[str]
    host: str
    port: int
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """
    Return application settings loaded from environment variables.

    Raises:
        RuntimeError: if the mongo backend is selected without MONGO_URI.
    """
    load_dotenv()

    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in BACKENDS:
        # Fallback to memory if unsupported
        backend = "memory"

    mongo_uri = os.getenv("MONGO_URI") or None
    if backend == "mongo" and not mongo_uri:
        raise RuntimeError("MONGO_URI not set in environment")

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/todos.db").strip(),
        mongo_uri=mongo_uri,
        mongo_db_name=_get_env("MONGO_DB_NAME", "todos").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        host=_get_env("HOST", "127.0.0.1").strip(),
        port=_parse_int(_get_env("PORT", "5000"), 5000),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
