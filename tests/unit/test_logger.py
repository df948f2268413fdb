"""Unit tests for logger configuration."""

import logging
import sys
from unittest.mock import MagicMock, patch

import pytest

from mdclip.logger import NOISY_LOGGERS, logger, setup_logging


class TestLogger:
    """Test logger configuration and setup."""

    def test_logger_instance_exists(self) -> None:
        """Test that the application logger is named after the package."""
        assert logger.name == "mdclip"
        assert isinstance(logger, logging.Logger)

    @patch("mdclip.logger.settings")
    def test_setup_logging_debug_mode(self, mock_settings: MagicMock) -> None:
        """Test DEBUG level when MDCLIP_DEBUG is true."""
        mock_settings.mdclip_debug = True

        with patch("logging.basicConfig") as mock_basic_config:
            setup_logging()

            call_kwargs = mock_basic_config.call_args.kwargs
            assert call_kwargs["level"] == logging.WARNING
            assert call_kwargs["stream"] == sys.stderr
            for field in ("%(asctime)s", "%(name)s", "%(levelname)s", "%(message)s"):
                assert field in call_kwargs["format"]
            assert logger.level == logging.DEBUG

    @patch("mdclip.logger.settings")
    def test_setup_logging_info_mode(self, mock_settings: MagicMock) -> None:
        """Test INFO level when MDCLIP_DEBUG is false."""
        mock_settings.mdclip_debug = False

        with patch("logging.basicConfig"):
            setup_logging()

        assert logger.level == logging.INFO

    @patch("mdclip.logger.settings")
    def test_setup_logging_clears_handlers(self, mock_settings: MagicMock) -> None:
        """Test that existing root handlers are removed."""
        mock_settings.mdclip_debug = False
        dummy_handler = logging.StreamHandler()
        logging.root.handlers = [dummy_handler]

        setup_logging()

        assert dummy_handler not in logging.root.handlers

    @patch("mdclip.logger.settings")
    @patch("mdclip.logger.logger")
    def test_setup_logging_logs_initialization_message(
        self, mock_logger: MagicMock, mock_settings: MagicMock
    ) -> None:
        """Test that setup_logging announces the chosen level."""
        mock_settings.mdclip_debug = True

        setup_logging()

        mock_logger.info.assert_called_once()
        args = mock_logger.info.call_args[0]
        assert "mdclip logging initialized" in args[0]
        assert args[1] == "DEBUG"

    @pytest.mark.parametrize(("debug", "expected"), [(False, logging.WARNING), (True, logging.INFO)])
    @patch("mdclip.logger.settings")
    def test_setup_logging_quiets_library_loggers(
        self, mock_settings: MagicMock, debug: bool, expected: int
    ) -> None:
        """Test that HTTP and readability loggers only get chatty in debug mode."""
        mock_settings.mdclip_debug = debug

        with patch("logging.basicConfig"):
            setup_logging()

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == expected
