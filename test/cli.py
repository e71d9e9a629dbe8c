# python
"""
Command-line entry point behavioral tests.

Scope
- Validate `python -m helmsman FILE`: printing the tree, placeholder types and
  providers, and the exit status for definition errors.

Conventions
- Test method names follow CamelCase per project convention.
- main() is called in-process with an explicit argv; output is captured.
"""

from __future__ import annotations

import contextlib
import io
import logging
import os
import tempfile
import unittest
from unittest import TestCase, mock

from rich.console import Console

from helmsman.__main__ import main


class TestMain(TestCase):
    """Behavioral tests for the definition linter."""

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.addCleanup(self.directory.cleanup)

        logger = logging.getLogger("helmsman")
        state = (list(logger.handlers), logger.level, logger.propagate)

        def restore():
            logger.handlers[:] = state[0]
            logger.setLevel(state[1])
            logger.propagate = state[2]
        self.addCleanup(restore)

    def write(self, text):
        path = os.path.join(self.directory.name, "commands.txt")
        with open(path, "w", encoding="utf-8") as file:
            file.write(text)
        return path

    def testPrintsTree(self):
        path = self.write("give player:target int:amount {\n    context wallet\n    hook give\n}\n")
        output = io.StringIO()
        with contextlib.redirect_stdout(output):
            status = main([path, "--types", "player", "--providers", "wallet"])
        self.assertEqual(status, 0)
        self.assertIn("give", output.getvalue())
        self.assertIn("player", output.getvalue())

    def testDefinitionErrorExits(self):
        path = self.write("give player:target {\n}\n")
        console = Console(file=io.StringIO(), width=100, color_system=None)
        with mock.patch("helmsman.faults.console", console):
            with self.assertRaises(SystemExit) as context:
                main([path])
        self.assertEqual(context.exception.code, 1)
        self.assertIn("unknown type 'player'", console.file.getvalue())

    def testMessagesFileIsCompleted(self):
        path = self.write("ping {\n}\n")
        messages = os.path.join(self.directory.name, "messages.txt")
        with contextlib.redirect_stdout(io.StringIO()):
            main([path, "--messages", messages])
        self.assertTrue(os.path.exists(messages))


if __name__ == "__main__":
    unittest.main()
