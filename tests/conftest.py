"""Shared pytest fixtures for test modules."""

from __future__ import annotations

import os
import sqlite3
from typing import TYPE_CHECKING

import pytest

from bricks.config import Settings
from bricks.db.connection import create_connection
from bricks.db.pool import ConnectionPool

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all BRICKS__ env vars so tests are isolated from the developer's shell."""
    for key in list(os.environ):
        if key.startswith("BRICKS__"):
            monkeypatch.delenv(key)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "bricks.db"


@pytest.fixture
def conn() -> Generator[sqlite3.Connection]:
    connection = create_connection(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def pool(db_path: Path) -> Generator[ConnectionPool]:
    connection_pool = ConnectionPool(db_path, size=4)
    yield connection_pool
    connection_pool.close_all()


@pytest.fixture
def settings(db_path: Path) -> Settings:
    return Settings(db_path=db_path, pool_size=2, compute_timeout=5.0)
