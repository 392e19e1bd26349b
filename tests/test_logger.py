"""Tests for the rich logging setup."""

import io
import logging

from rich.console import Console

from zfs_backup_ng import __logger__


class TestCreateLogger:
    """Tests for create_logger."""

    def test_level(self):
        """Test the package logger follows the requested level."""
        __logger__.create_logger(level="DEBUG", console=Console(file=io.StringIO()))
        assert __logger__.logger.level == logging.DEBUG
        __logger__.create_logger(level="WARNING", console=Console(file=io.StringIO()))
        assert __logger__.logger.level == logging.WARNING

    def test_unknown_level_defaults_to_info(self):
        """Test an invalid level name falls back to INFO."""
        __logger__.create_logger(level="LOUD", console=Console(file=io.StringIO()))
        assert __logger__.logger.level == logging.INFO

    def test_output_goes_to_console(self):
        """Test records are rendered on the configured console."""
        buffer = io.StringIO()
        __logger__.create_logger(level="INFO", console=Console(file=buffer))
        logging.getLogger("zfs_backup_ng.test").info("hello pool")
        __logger__.logger.info("from endpoint")
        assert "hello pool" in buffer.getvalue()
        assert "from endpoint" in buffer.getvalue()
        assert __logger__.get_console().file is buffer
