# python
"""
Hook registration behavioral tests.

Scope
- Validate CommandCollection.register(): arity checks (arguments, flags, context),
  *args tails, keyword-only parameters, actor annotations and table precedence.
- Validate that every problem is collected into one RegistrationExit and that
  nothing is bound when registration fails.
- Validate UnusedHookWarning for table entries no node uses.
- Validate the Hooks decorator table.

Conventions
- Test method names follow CamelCase per project convention.
- Handlers are plain functions; arity is the only thing under test.
"""

from __future__ import annotations

import textwrap
import unittest
import warnings
from unittest import TestCase

from helmsman import *


class RecordingActor:
    def has_permission(self, permission, /):
        return True

    def kind(self):
        return SenderKind.PLAYER

    def send_message(self, text, /):
        pass


DEFINITION = textwrap.dedent("""\
    give int:amount string:target? -s,--silent {
        context wallet
        assert admin
        hook give
        all int:amount {
            hook give_all
        }
    }
    ping {
        hook ping
    }
""")

PROVIDERS = (
    ContextProvider("wallet", lambda actor: 100),
    ContextProvider.asserting("admin", lambda actor: True),
)


def give(actor, amount, target, silent, wallet):
    pass


def give_all(actor, amount):
    pass


def ping(actor):
    pass


class TestRegister(TestCase):
    """Behavioral tests for binding hook tables."""

    def setUp(self):
        self.commands = parse(DEFINITION, providers=PROVIDERS)

    def testBindsEveryHook(self):
        self.commands.register("demo", {"give": give, "give_all": give_all, "ping": ping})
        self.assertIs(self.commands[0].handler, give)
        self.assertIs(self.commands[0].children[0].handler, give_all)
        self.assertIs(self.commands[1].handler, ping)
        self.assertEqual(self.commands.prefix, "demo")

    def testTablesAreSearchedInOrder(self):
        def other(actor):
            pass

        self.commands.register("demo", {"ping": ping}, {"give": give, "give_all": give_all, "ping": other})
        self.assertIs(self.commands[1].handler, ping)

    def testMissingHooksAreCollected(self):
        with self.assertRaises(RegistrationExit) as context:
            self.commands.register("demo", {"give": give})
        errors = context.exception.exceptions
        self.assertEqual(len(errors), 2)
        self.assertTrue(all(isinstance(error, MissingHookError) for error in errors))
        self.assertEqual({error.command.hook for error in errors}, {"give_all", "ping"})
        self.assertIsNone(self.commands[0].handler)
        self.assertIsNone(self.commands.prefix)

    def testWrongArity(self):
        def short(actor, amount):
            pass

        with self.assertRaises(RegistrationExit) as context:
            self.commands.register("demo", {"give": short, "give_all": give_all, "ping": ping})
        error, = context.exception.exceptions
        self.assertIsInstance(error, HookSignatureError)
        self.assertIn("passes 5", str(error))
        self.assertIn("amount, target, silent, wallet", error.options["hint"])

    def testTooManyParameters(self):
        with self.assertRaises(RegistrationExit):
            self.commands.register("demo", {"give": give, "give_all": give, "ping": ping})

    def testVariadicTail(self):
        def flexible(actor, *values):
            pass

        self.commands.register("demo", {"give": flexible, "give_all": flexible, "ping": flexible})
        self.assertIs(self.commands[1].handler, flexible)

    def testKeywordOnlyParameters(self):
        def optional(actor, amount, *, verbose=False):
            pass

        def required(actor, *, verbose):
            pass

        with self.assertRaises(RegistrationExit) as context:
            self.commands.register("demo", {"give": give, "give_all": optional, "ping": required})
        error, = context.exception.exceptions
        self.assertIs(error.command, self.commands[1])

    def testActorAnnotation(self):
        def typed(actor: RecordingActor):
            pass

        def mistyped(actor: int):
            pass

        self.commands.register("demo", {"give": give, "give_all": give_all, "ping": typed})
        commands = parse(DEFINITION, providers=PROVIDERS)
        with self.assertRaises(RegistrationExit):
            commands.register("demo", {"give": give, "give_all": give_all, "ping": mistyped})

    def testNonCallableHandler(self):
        with self.assertRaises(RegistrationExit) as context:
            self.commands.register("demo", {"give": give, "give_all": give_all, "ping": "ping"})
        self.assertIn("not callable", str(context.exception.exceptions[0]))

    def testRegisterOnlyOnce(self):
        hooks = {"give": give, "give_all": give_all, "ping": ping}
        self.commands.register("demo", hooks)
        with self.assertRaises(RegistrationExit) as context:
            self.commands.register("demo", hooks)
        self.assertEqual(len(context.exception.exceptions), 3)

    def testUnusedHookWarning(self):
        with self.assertWarns(UnusedHookWarning) as context:
            self.commands.register("demo", {"give": give, "give_all": give_all, "ping": ping, "pong": ping})
        self.assertIn("'pong'", str(context.warning))

    def testNoWarningWhenEverythingIsUsed(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            self.commands.register("demo", {"give": give, "give_all": give_all, "ping": ping})

    def testPrefixValidation(self):
        with self.assertRaises(ValueError):
            self.commands.register("two words", {})
        with self.assertRaises(ValueError):
            self.commands.register("a:b", {})
        with self.assertRaises(TypeError):
            self.commands.register(5, {})
        with self.assertRaises(TypeError):
            self.commands.register("demo", [give])

    def testBoundHandlerReceivesValues(self):
        received = []
        commands = parse(DEFINITION, providers=PROVIDERS)
        commands.register("demo", {
            "give": lambda actor, amount, target, silent, wallet: received.append((amount, target, silent, wallet)),
            "give_all": give_all,
            "ping": ping,
        })
        commands.dispatch(RecordingActor(), "give 5 --silent")
        self.assertEqual(received, [(5, None, True, 100)])


class TestHooks(TestCase):
    """Behavioral tests for the decorator table."""

    def testDecoratorRegistersAndReturns(self):
        hooks = Hooks()

        @hooks("ping")
        def handler(actor):
            pass

        self.assertIs(hooks["ping"], handler)
        self.assertEqual(repr(hooks), "hooks('ping')")

    def testDuplicateRejected(self):
        hooks = Hooks()
        hooks("ping")(ping)
        with self.assertRaises(ValueError):
            hooks("ping")(give)

    def testInvalidNames(self):
        hooks = Hooks()
        with self.assertRaises(ValueError):
            hooks("  ")
        with self.assertRaises(TypeError):
            hooks(3)

    def testNonCallableRejected(self):
        with self.assertRaises(TypeError):
            Hooks()("ping")("not a function")


if __name__ == "__main__":
    unittest.main()
