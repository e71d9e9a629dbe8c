# python
"""
Message template behavioral tests.

Scope
- Validate defaults, overrides, host-level __messages__ and format().
- Validate Messages.load(): reading `key: value` files, ignoring comments and
  malformed lines, and writing missing defaults back.

Conventions
- Test method names follow CamelCase per project convention.
- Files live in a temporary directory created per test.
"""

from __future__ import annotations

import os
import sys
import tempfile
import unittest
from unittest import TestCase, mock

from helmsman import Messages, DEFAULTS


class TestMessages(TestCase):
    """Behavioral tests for in-memory templates."""

    def testDefaults(self):
        messages = Messages()
        self.assertEqual(dict(messages), dict(DEFAULTS))
        self.assertEqual(messages.format("help-title", name="give"), "--[ help for give ]--")
        self.assertEqual(messages.format("help-entry", usage="give <int:amount>", help="gives"), "give <int:amount>: gives")

    def testOverrides(self):
        messages = Messages({"no-permission": "denied: {permission}"})
        self.assertEqual(messages.format("no-permission", permission="x.y"), "denied: x.y")
        self.assertEqual(messages["console-only"], DEFAULTS["console-only"])

    def testHostMessages(self):
        with mock.patch.object(sys.modules["__main__"], "__messages__", {"command-error": "oops"}, create=True):
            self.assertEqual(Messages()["command-error"], "oops")
            self.assertEqual(Messages({"command-error": "mine"})["command-error"], "mine")

    def testUnknownKey(self):
        with self.assertRaises(KeyError):
            Messages().format("missing")

    def testRejectsNonMapping(self):
        with self.assertRaises(TypeError):
            Messages(["help-title"])


class TestLoad(TestCase):
    """Behavioral tests for message files."""

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.addCleanup(self.directory.cleanup)

    def testCreatesMissingFile(self):
        path = os.path.join(self.directory.name, "nested", "messages.txt")
        messages = Messages.load(path)
        self.assertEqual(dict(messages), dict(DEFAULTS))
        with open(path, encoding="utf-8") as file:
            lines = file.read().splitlines()
        self.assertEqual(lines, [f"{key}: {value}" for key, value in DEFAULTS.items()])

    def testReadsOverridesAndAppendsDefaults(self):
        path = os.path.join(self.directory.name, "messages.txt")
        with open(path, "w", encoding="utf-8") as file:
            file.write("# custom messages\n\nhelp-title: >> {name} <<\nnot a message")

        with self.assertLogs("helmsman.messages", "WARNING"):
            messages = Messages.load(path)
        self.assertEqual(messages.format("help-title", name="give"), ">> give <<")

        with open(path, encoding="utf-8") as file:
            lines = file.read().splitlines()
        self.assertEqual(lines[:4], ["# custom messages", "", "help-title: >> {name} <<", "not a message"])
        self.assertEqual(len(lines), 4 + len(DEFAULTS) - 1)
        self.assertNotIn("help-title: --[ help for {name} ]--", lines)

    def testCompleteFileIsLeftAlone(self):
        path = os.path.join(self.directory.name, "messages.txt")
        text = "".join(f"{key}: {value}\n" for key, value in DEFAULTS.items())
        with open(path, "w", encoding="utf-8") as file:
            file.write(text)
        Messages.load(path)
        with open(path, encoding="utf-8") as file:
            self.assertEqual(file.read(), text)

    def testValueMayContainColons(self):
        path = os.path.join(self.directory.name, "messages.txt")
        with open(path, "w", encoding="utf-8") as file:
            file.write("command-error: error: contact an admin\n")
        self.assertEqual(Messages.load(path)["command-error"], "error: contact an admin")


if __name__ == "__main__":
    unittest.main()
