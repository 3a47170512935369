from __future__ import annotations

import logging

from mustangcontrol.logging_setup import configure_logging


class TestConfigureLogging:
    def test_cli_level_wins_over_env(self, monkeypatch):
        monkeypatch.setenv("MUSTANG_LOG_LEVEL", "ERROR")
        configure_logging(cli_level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_env_level(self, monkeypatch):
        monkeypatch.setenv("MUSTANG_LOG_LEVEL", "warning")
        configure_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.delenv("MUSTANG_LOG_LEVEL", raising=False)
        configure_logging(cli_level="chatty")
        assert logging.getLogger().level == logging.INFO
