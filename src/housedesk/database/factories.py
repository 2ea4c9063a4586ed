"""Store factory functions for creating document store instances."""

import os
from pathlib import Path
from typing import Optional

from housedesk.database.sqlalchemy_db import SQLAlchemyDocumentStore


def create_sqlite_store(database_path: Optional[str] = None) -> SQLAlchemyDocumentStore:
    """Create a SQLite-backed document store.

    Args:
        database_path: Path to SQLite database file. If None, checks HOUSEDESK_DB_PATH
            environment variable, then defaults to ~/.housedesk/housedesk.db

    Returns:
        SQLAlchemyDocumentStore instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("HOUSEDESK_DB_PATH")

    if database_path is None:
        home = Path.home()
        db_dir = home / ".housedesk"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "housedesk.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDocumentStore(database_url)
