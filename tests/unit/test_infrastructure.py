from __future__ import annotations

import logging
import threading
from pathlib import Path

from sqlalchemy import text

from fieldreports.core.logging import DEFAULT_CONFIG_PATH, configure_logging
from fieldreports.db.session import build_engine


def test_sqlite_engine_is_usable_across_threads(tmp_path: Path) -> None:
    engine = build_engine(f"sqlite:///{tmp_path / 'threads.db'}")
    results: list[int] = []

    with engine.connect() as connection:
        def query() -> None:
            results.append(connection.execute(text("SELECT 1")).scalar_one())

        worker = threading.Thread(target=query)
        worker.start()
        worker.join()

    engine.dispose()
    assert results == [1]


def test_logging_config_ships_with_project() -> None:
    assert DEFAULT_CONFIG_PATH.name == "logging.yaml"
    assert DEFAULT_CONFIG_PATH.exists()

    configure_logging()

    assert logging.getLogger("fieldreports").level == logging.INFO


def test_missing_logging_config_falls_back(tmp_path: Path) -> None:
    configure_logging(tmp_path / "absent.yaml", level="debug")
