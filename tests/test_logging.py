"""Unit tests for app.core.logging."""

import logging
import unittest

from app.core.logging import LOG_DATE_FORMAT, configure_logging


class TestConfigureLogging(unittest.TestCase):
    def tearDown(self) -> None:
        configure_logging("WARNING")

    def test_level_applied(self) -> None:
        configure_logging("debug")
        self.assertEqual(logging.getLogger().level, logging.DEBUG)

    def test_unknown_level_falls_back_to_info(self) -> None:
        configure_logging("chatty")
        self.assertEqual(logging.getLogger().level, logging.INFO)

    def test_timestamps_are_utc(self) -> None:
        configure_logging("INFO")
        formatter = logging.getLogger().handlers[0].formatter
        record = logging.LogRecord("app", logging.INFO, __file__, 1, "msg", None, None)
        record.created = 0
        self.assertEqual(formatter.formatTime(record, LOG_DATE_FORMAT), "1970-01-01T00:00:00Z")

    def test_uvicorn_access_quieted(self) -> None:
        configure_logging("DEBUG")
        self.assertEqual(logging.getLogger("uvicorn.access").level, logging.WARNING)


if __name__ == "__main__":
    unittest.main()
