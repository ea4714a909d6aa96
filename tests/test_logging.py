from __future__ import annotations

import logging
from pathlib import Path

import pytest

from shop_inventory.logging import get_logger


def test_logger_names_are_namespaced() -> None:
    logger = get_logger("namespace-check")
    assert logger.name == "shop_inventory.namespace-check"
    assert get_logger("namespace-check") is logger
    assert len(logger.handlers) == 1


def test_inventory_env_overrides_generic_level(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    log_file = tmp_path / "inventory.log"
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    monkeypatch.setenv("INVENTORY_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("INVENTORY_LOG_FILE", str(log_file))

    logger = get_logger("env-override-check")
    assert logger.level == logging.DEBUG
    logger.debug("recount started")
    for handler in logger.handlers:
        handler.flush()
    assert "recount started" in log_file.read_text(encoding="utf-8")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
