# python
"""
Logging setup behavioral tests.

Scope
- Validate configure_logging(): handler kind, level, idempotence and propagation.
- Validate that library records reach the installed handler.

Conventions
- Test method names follow CamelCase per project convention.
- The "helmsman" logger is restored after every test.
"""

from __future__ import annotations

import io
import logging
import unittest
from unittest import TestCase

from rich.console import Console
from rich.logging import RichHandler

from helmsman import configure_logging


class TestConfigureLogging(TestCase):
    """Behavioral tests for the host-facing logging helper."""

    def setUp(self):
        logger = logging.getLogger("helmsman")
        state = (list(logger.handlers), logger.level, logger.propagate)

        def restore():
            logger.handlers[:] = state[0]
            logger.setLevel(state[1])
            logger.propagate = state[2]
        self.addCleanup(restore)

    def testRichHandler(self):
        logger = configure_logging("debug")
        self.assertEqual(logger.name, "helmsman")
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertFalse(logger.propagate)
        self.assertEqual(len(logger.handlers), 1)
        self.assertIsInstance(logger.handlers[0], RichHandler)

    def testPlainHandler(self):
        logger = configure_logging(logging.WARNING, fancy=False)
        handler, = logger.handlers
        self.assertNotIsInstance(handler, RichHandler)
        self.assertIsInstance(handler, logging.StreamHandler)
        self.assertEqual(logger.level, logging.WARNING)

    def testReconfiguringReplacesHandler(self):
        configure_logging()
        logger = configure_logging(fancy=False)
        self.assertEqual(len(logger.handlers), 1)

    def testRecordsReachConsole(self):
        console = Console(file=io.StringIO(), width=120, color_system=None)
        configure_logging("INFO", console=console)
        logging.getLogger("helmsman.commands").info("registered %d handler(s)", 3)
        logging.getLogger("helmsman.matching").debug("hidden")
        output = console.file.getvalue()
        self.assertIn("registered 3 handler(s)", output)
        self.assertNotIn("hidden", output)


if __name__ == "__main__":
    unittest.main()
