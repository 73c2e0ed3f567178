"""Tests for core logging module."""

import logging
from io import StringIO

import pytest

from .lib import get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_package_logger():
    logger = logging.getLogger("composer")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestLogging:
    """Test core logging API."""

    @pytest.mark.unit
    def test_get_logger(self) -> None:
        logger = get_logger("composer.test")
        assert logger.name == "composer.test"
        assert isinstance(logger, logging.Logger)

    @pytest.mark.unit
    def test_get_logger_default_name(self) -> None:
        assert get_logger().name == "composer"

    @pytest.mark.unit
    def test_level_name_resolved(self) -> None:
        """Module loggers below the package logger reach the stream."""
        stream = StringIO()
        setup_logging(level="debug", stream=stream)
        logging.getLogger("composer.instance.lib").debug("created i1")

        assert get_logger().level == logging.DEBUG
        assert "created i1" in stream.getvalue()

    @pytest.mark.unit
    def test_unknown_level_name(self) -> None:
        setup_logging(level="not-a-level", stream=StringIO())
        assert get_logger().level == logging.INFO

    @pytest.mark.unit
    def test_repeated_setup_replaces_handler(self) -> None:
        first, second = StringIO(), StringIO()
        setup_logging(logging.INFO, stream=first)
        logger = setup_logging(logging.WARNING, stream=second)
        logging.getLogger("composer.mutator").warning("rolled back")

        assert first.getvalue() == ""
        assert "rolled back" in second.getvalue()
        assert sum(getattr(h, "_composer_handler", False) for h in logger.handlers) == 1
