"""Tests for engine.logging_setup."""

import logging
import os
import tempfile
import unittest
from logging.handlers import RotatingFileHandler

from rich.logging import RichHandler

from engine.logging_setup import configure_logging


class TestConfigureLogging(unittest.TestCase):
    def setUp(self):
        root = logging.getLogger()
        self._saved = (root.level, list(root.handlers))

    def tearDown(self):
        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        level, handlers = self._saved
        root.setLevel(level)
        for handler in handlers:
            root.addHandler(handler)

    def test_console_only(self):
        configure_logging("INFO")
        root = logging.getLogger()
        self.assertEqual(root.level, logging.INFO)
        self.assertEqual(len(root.handlers), 1)
        self.assertIsInstance(root.handlers[0], RichHandler)

    def test_with_log_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "speedcheck.log")
            configure_logging("debug", log_file=path)
            root = logging.getLogger()
            self.assertEqual(root.level, logging.DEBUG)
            self.assertTrue(any(isinstance(h, RotatingFileHandler) for h in root.handlers))

            logging.getLogger("engine.runner").info("Phase idle -> measuring_download")
            for handler in root.handlers:
                handler.flush()
            with open(path, encoding="utf-8") as fh:
                line = fh.read()
            self.assertIn("[INFO] engine.runner - Phase idle -> measuring_download", line)
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()

    def test_unknown_level_falls_back(self):
        configure_logging("chatty")
        self.assertEqual(logging.getLogger().level, logging.WARNING)


if __name__ == "__main__":
    unittest.main()
