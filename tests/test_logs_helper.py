from __future__ import annotations

import logging

from districts.common import configure_root_logger


def test_configure_root_logger_accepts_names_and_ints():
    root = logging.getLogger()
    previous = root.level
    try:
        configure_root_logger(level="debug")
        assert root.level == logging.DEBUG
        configure_root_logger(level=logging.WARNING)
        assert root.level == logging.WARNING
        assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)
    finally:
        root.setLevel(previous)


def test_configure_root_logger_reads_env_level(monkeypatch):
    root = logging.getLogger()
    previous = root.level
    monkeypatch.setenv("DISTRICTS_LOG_LEVEL", "error")
    try:
        configure_root_logger()
        assert root.level == logging.ERROR
        handlers = len(root.handlers)
        configure_root_logger()
        assert len(root.handlers) == handlers
    finally:
        root.setLevel(previous)
