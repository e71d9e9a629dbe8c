# python
"""
Declaration behavioral tests.

Scope
- Validate Argument: usage labels, metadata sanitization, defaults and read-only properties.
- Validate Flag: aliases, boolean detection, matching, fallbacks and labels.
- Validate ContextProvider: provide(), map() and asserting().
- Validate SenderKind parsing and admission.

Conventions
- Test method names follow CamelCase per project convention.
- Types always come from a fresh TypeRegistry.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from helmsman import Argument, Flag, ContextProvider, SenderKind, TypeRegistry

types = TypeRegistry()


class TestArgument(TestCase):
    """Behavioral tests for positional argument declarations."""

    def testRequiredLabel(self):
        self.assertEqual(str(Argument(types["int"], "amount", 0)), "<int:amount>")

    def testOptionalLabel(self):
        self.assertEqual(str(Argument(types["string"], "target", 1, optional=True)), "[string:target]")

    def testHiddenLabel(self):
        self.assertEqual(str(Argument(types["string"], "player", 0, hidden=True)), "<player>")

    def testVariadicLabel(self):
        self.assertEqual(str(Argument(types["string"], "words", 0, variadic=True)), "<string:words...>")

    def testDefaultRequiresOptional(self):
        with self.assertRaises(ValueError):
            Argument(types["int"], "amount", 0, default=lambda actor: 1)

    def testDefaultMustBeCallable(self):
        with self.assertRaises(TypeError):
            Argument(types["int"], "amount", 0, optional=True, default=1)

    def testFallbackWithoutDefaultIsNone(self):
        self.assertIsNone(Argument(types["int"], "amount", 0, optional=True).fallback(object()))

    def testFallbackUsesActor(self):
        argument = Argument(types["string"], "target", 0, optional=True, default=lambda actor: actor.upper())
        self.assertEqual(argument.fallback("steve"), "STEVE")

    def testPositionValidation(self):
        with self.assertRaises(ValueError):
            Argument(types["int"], "amount", -1)
        with self.assertRaises(TypeError):
            Argument(types["int"], "amount", True)

    def testTypeMustBeArgType(self):
        with self.assertRaises(TypeError):
            Argument("int", "amount", 0)

    def testNameValidation(self):
        with self.assertRaises(ValueError):
            Argument(types["int"], "two words", 0)
        with self.assertRaises(ValueError):
            Argument(types["int"], "", 0)

    def testPropertiesAreReadOnly(self):
        argument = Argument(types["int"], "amount", 0)
        with self.assertRaises(AttributeError):
            argument.name = "other"

    def testReprShowsTypeName(self):
        self.assertIn("type='int'", repr(Argument(types["int"], "amount", 0)))


class TestFlag(TestCase):
    """Behavioral tests for flag declarations."""

    def testBooleanFlag(self):
        flag = Flag(types["boolean"], ["-f", "--force"], 2)
        self.assertTrue(flag.boolean)
        self.assertEqual(flag.name, "-f")
        self.assertEqual(flag.names, ["-f", "--force"])
        self.assertEqual(str(flag), "[-f,--force]")
        self.assertIs(flag.fallback(None), False)

    def testTypedFlag(self):
        flag = Flag(types["int"], "--count", 0)
        self.assertFalse(flag.boolean)
        self.assertEqual(str(flag), "[--count int]")
        self.assertIsNone(flag.fallback(None))

    def testDefault(self):
        flag = Flag(types["int"], "--count", 0, default=lambda actor: 10)
        self.assertEqual(flag.fallback(None), 10)

    def testMatchesEveryAlias(self):
        flag = Flag(types["boolean"], ["-s", "--silent"], 0)
        self.assertTrue(flag.matches("-s"))
        self.assertTrue(flag.matches("--silent"))
        self.assertFalse(flag.matches("--silent=true"))

    def testInvalidNames(self):
        with self.assertRaises(ValueError):
            Flag(types["boolean"], "force", 0)
        with self.assertRaises(ValueError):
            Flag(types["boolean"], "--bad_name", 0)
        with self.assertRaises(ValueError):
            Flag(types["boolean"], ["-f", "-f"], 0)
        with self.assertRaises(TypeError):
            Flag(types["boolean"], [], 0)

    def testUnicodeNames(self):
        self.assertEqual(Flag(types["boolean"], "--größe", 0).name, "--größe")


class TestContextProvider(TestCase):
    """Behavioral tests for context providers."""

    def testProvide(self):
        provider = ContextProvider("self", lambda actor: actor)
        self.assertEqual(provider.provide("steve"), "steve")

    def testErrorMessage(self):
        provider = ContextProvider("wallet", lambda actor: None, "you have no wallet")
        self.assertEqual(provider.error, "you have no wallet")
        self.assertIsNone(provider.provide("steve"))

    def testMapKeepsAbsence(self):
        base = ContextProvider("name", lambda actor: actor or None)
        upper = base.map("upper", str.upper, "no name")
        self.assertEqual(upper.provide("steve"), "STEVE")
        self.assertIsNone(upper.provide(""))
        self.assertEqual(upper.error, "no name")

    def testAsserting(self):
        provider = ContextProvider.asserting("even", lambda actor: actor % 2 == 0)
        self.assertIs(provider.provide(2), True)
        self.assertIsNone(provider.provide(3))

    def testSupplierMustBeCallable(self):
        with self.assertRaises(TypeError):
            ContextProvider("broken", None)

    def testErrorMustBeString(self):
        with self.assertRaises(TypeError):
            ContextProvider("broken", lambda actor: 1, 42)


class TestSenderKind(TestCase):
    """Behavioral tests for sender kinds."""

    def testParse(self):
        self.assertIs(SenderKind.parse("player"), SenderKind.PLAYER)
        self.assertIs(SenderKind.parse("Players"), SenderKind.PLAYER)
        self.assertIs(SenderKind.parse("console"), SenderKind.CONSOLE)
        self.assertIs(SenderKind.parse("server"), SenderKind.CONSOLE)
        self.assertIs(SenderKind.parse("anyone"), SenderKind.EVERYONE)
        self.assertIs(SenderKind.parse(""), SenderKind.EVERYONE)

    def testAdmits(self):
        self.assertTrue(SenderKind.EVERYONE.admits(SenderKind.CONSOLE))
        self.assertTrue(SenderKind.PLAYER.admits(SenderKind.PLAYER))
        self.assertFalse(SenderKind.PLAYER.admits(SenderKind.CONSOLE))


if __name__ == "__main__":
    unittest.main()
