"""Tests for correlation-aware logging."""

import logging

from friendly_xml.shared import get_logger, new_correlation_id


class TestCorrelationLogger:
    """Test structured log records."""

    def test_records_carry_component_and_correlation_id(self, caplog):
        """Test the fields added to every record."""
        logger = get_logger("friendly_xml.test", "abc123", "search")

        with caplog.at_level(logging.INFO, logger="friendly_xml.test"):
            logger.info("Search completed", extra={"hits": 3})

        (record,) = caplog.records
        assert record.component == "search"
        assert record.correlation_id == "abc123"
        assert record.hits == 3

    def test_default_component(self):
        """Test that the component defaults to the last name segment."""
        assert get_logger("friendly_xml.search.raw").component == "raw"

    def test_bind(self, caplog):
        """Test that bound context is added without touching the parent."""
        parent = get_logger("friendly_xml.test", "abc123", "cli")
        child = parent.bind(command="search")

        with caplog.at_level(logging.DEBUG, logger="friendly_xml.test"):
            child.debug("Running command")
            parent.debug("No context")

        first, second = caplog.records
        assert first.command == "search"
        assert first.correlation_id == "abc123"
        assert not hasattr(second, "command")
        assert parent.context == {}

    def test_disabled_level_is_skipped(self, caplog):
        """Test that records below the logger level are not emitted."""
        logger = get_logger("friendly_xml.test")

        with caplog.at_level(logging.WARNING, logger="friendly_xml.test"):
            logger.debug("hidden")
            logger.warning("shown")

        assert [r.getMessage() for r in caplog.records] == ["shown"]

    def test_new_correlation_id(self):
        """Test that correlation ids are short and distinct."""
        first, second = new_correlation_id(), new_correlation_id()
        assert len(first) == 12
        assert first != second
