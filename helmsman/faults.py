"""
Helmsman faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every definition and
  registration issue. Codes are grouped by domain to keep logs searchable.
- CommandException / CommandWarning: base types that carry message + options and
  know how to render themselves with rich (header, message, hint).
- DefinitionError family: raised while reading command definitions; every
  instance knows the 1-based line it refers to.
- RegistrationError family and RegistrationExit: raised while binding hooks;
  the exit groups one error per offending node.
- trigger(): central entry point to surface any fault (raise, or print in shell mode).
- getdoc(): optional description lookup for a code from the host application.

Match failures are not faults: the matcher reports them as verdicts and the
dispatcher turns them into help or messages for the actor.

Integration
- The parser and the collection raise faults directly.
- Shell-like hosts (and `python -m helmsman`) call trigger(fault, shell=True)
  to have them rendered on stderr instead.
"""
import copy
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping (by high-level domain)
    - layout (2110x)
      • STRAY_TEXT, UNKNOWN_DIRECTIVE, UNCLOSED_BLOCK, UNBALANCED_BLOCK, EMPTY_DIRECTIVE
    - arguments (2111x)
      • MALFORMED_ARGUMENT, UNKNOWN_TYPE, UNBALANCED_PARENTHESIS, TRAILING_CONTENT,
        INVALID_DEFAULT, REQUIRED_DEFAULT, MISPLACED_VARIADIC, DUPLICATED_ARGUMENT,
        INVALID_FLAG
    - providers (2112x)
      • UNKNOWN_PROVIDER
    - registration (2210x)
      • MISSING_HOOK, HOOK_SIGNATURE
    - warnings (2310x)
      • UNUSED_HOOK

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- layout errors (211xx) ---
    STRAY_TEXT                  = 21101
    UNKNOWN_DIRECTIVE           = 21102
    UNCLOSED_BLOCK              = 21103
    UNBALANCED_BLOCK            = 21104
    EMPTY_DIRECTIVE             = 21105

    # --- argument errors (211xx) ---
    MALFORMED_ARGUMENT          = 21111
    UNKNOWN_TYPE                = 21112
    UNBALANCED_PARENTHESIS      = 21113
    TRAILING_CONTENT            = 21114
    INVALID_DEFAULT             = 21115
    REQUIRED_DEFAULT            = 21116
    MISPLACED_VARIADIC          = 21117
    DUPLICATED_ARGUMENT         = 21118
    INVALID_FLAG                = 21119

    # --- provider errors (211xx) ---
    UNKNOWN_PROVIDER            = 21121

    # --- registration errors (221xx) ---
    MISSING_HOOK                = 22101
    HOOK_SIGNATURE              = 22102

    # --- warnings (231xx) ---
    UNUSED_HOOK                 = 23101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _styler(options, defaults):
    """
    build a style lookup honouring __main__.__styles__ and the 'colorful' option.
    """
    styles = defaultdict(str, defaults | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if options.get("colorful", True) else ""
    return styler


def _text(options, fragment, style=""):
    if not fragment:
        return Text("")
    if not options.get("colorful", True):
        return Text(str(fragment))
    if isinstance(fragment, Text):
        return fragment
    return Text(str(fragment), style)


def _prog():
    return getattr(__import__("__main__"), "__prog__", "helmsman")


class _Fault:
    """
    shared plumbing for exceptions and warnings: message, options, rendering.

    every concrete fault declares a class-level `code` and `title`; both may be
    overridden per instance through options (copy.replace(fault, title=...)).
    """
    code = Unset
    title = Unset
    palette = {}

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType({
            "code": type(self).code,
            "title": type(self).title,
        } | options)

    def __str__(self):
        return coalesce(self.message, "")

    def __rich__(self):
        options = self.options
        styler = _styler(options, type(self).palette)

        header = Text.assemble(
            "[ ",
            _text(options, _prog(), styler("prog-name")),
            " — ",
            _text(options, options["code"].normalize() if options["code"] else "", styler("code")),
            " | ",
            _text(options, coalesce(options["title"], "").title(), styler("title")),
            " ]"
        )
        renders = [_text(options, str(self), styler("message"))]
        if hint := options.get("hint"):
            renders.append(Text.assemble(_text(options, " → ", styler("hint-arrow")), _text(options, hint, styler("hint"))))
        if options["code"] and (docs := getdoc(options["code"])):
            renders.append(_text(options, docs, styler("docs")))

        if options.get("fancy", True):
            try:
                width = int((console.width - 4) * options["ratio"])
            except KeyError:
                width = None
            return Panel(Group(*renders), title=header, title_align="left", width=width)

        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class CommandException(_Fault, Exception):
    palette = {
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #00E5FF",  # neon cyan fault code
        "title": "bold #FF4DA6",  # friendly pinky title
        "message": "#C8C8D0",  # soft light gray message
        "hint-arrow": "#9CE19C dim",  # gentle green arrow
        "hint": "italic #9CE19C",  # gentle green hint text
        "docs": "underline #00E5FF dim",
    }

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)


class DefinitionError(CommandException):
    """
    a command definition could not be read; `line` is 1-based.
    """
    title = "bad definition"

    @property
    def line(self):
        return self.options.get("line")

    def __str__(self):
        if self.line is None:
            return super().__str__()
        return f"line {self.line}: {super().__str__()}"


class StrayTextError(DefinitionError):
    code, title = FaultCode.STRAY_TEXT, "stray text"
class UnknownDirectiveError(DefinitionError):
    code, title = FaultCode.UNKNOWN_DIRECTIVE, "unknown directive"
class UnclosedBlockError(DefinitionError):
    code, title = FaultCode.UNCLOSED_BLOCK, "unclosed block"
class UnbalancedBlockError(DefinitionError):
    code, title = FaultCode.UNBALANCED_BLOCK, "unbalanced block"
class EmptyDirectiveError(DefinitionError):
    code, title = FaultCode.EMPTY_DIRECTIVE, "empty directive"
class MalformedArgumentError(DefinitionError):
    code, title = FaultCode.MALFORMED_ARGUMENT, "malformed argument"
class UnknownTypeError(DefinitionError):
    code, title = FaultCode.UNKNOWN_TYPE, "unknown type"
class UnbalancedParenthesisError(DefinitionError):
    code, title = FaultCode.UNBALANCED_PARENTHESIS, "unbalanced parenthesis"
class TrailingContentError(DefinitionError):
    code, title = FaultCode.TRAILING_CONTENT, "trailing content"
class InvalidDefaultError(DefinitionError):
    code, title = FaultCode.INVALID_DEFAULT, "invalid default"
class RequiredDefaultError(DefinitionError):
    code, title = FaultCode.REQUIRED_DEFAULT, "default on required argument"
class MisplacedVariadicError(DefinitionError):
    code, title = FaultCode.MISPLACED_VARIADIC, "misplaced variadic"
class DuplicatedArgumentError(DefinitionError):
    code, title = FaultCode.DUPLICATED_ARGUMENT, "duplicated argument"
class InvalidFlagError(DefinitionError):
    code, title = FaultCode.INVALID_FLAG, "invalid flag"
class UnknownProviderError(DefinitionError):
    code, title = FaultCode.UNKNOWN_PROVIDER, "unknown provider"


class RegistrationError(CommandException):
    """
    a hook could not be bound; `command` is the offending node when known.
    """
    title = "bad registration"

    @property
    def command(self):
        return self.options.get("command")


class MissingHookError(RegistrationError):
    code, title = FaultCode.MISSING_HOOK, "missing hook"
class HookSignatureError(RegistrationError):
    code, title = FaultCode.HOOK_SIGNATURE, "hook signature"


class CommandWarning(_Fault, Warning):
    palette = {
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #FFB400",  # amber fault code for warnings
        "title": "bold #FFC2E0",  # softer pinky title for warnings
        "message": "#D6D6DE",  # slightly lighter gray body
        "hint-arrow": "#B8EFAF dim",  # softer green arrow
        "hint": "italic #B8EFAF",  # softer green hint text
        "docs": "underline #FFB400 dim",
    }

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=self.options.get("stacklevel", 4))
        console.print(self)


class UnusedHookWarning(CommandWarning):
    code, title = FaultCode.UNUSED_HOOK, "unused hook"


class RegistrationExit(ExceptionGroup[RegistrationError]):
    """
    every registration error found in one pass over a command collection.
    """
    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad registration", tuple(exceptions))

    def __init__(self, exceptions, **options):
        super().__init__("bad registration", tuple(exceptions))
        self.options = MappingProxyType(options)

    def __rich__(self):
        options = self.options
        styler = _styler(options, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "title": "bold #FF4DA6",  # friendly pinky group title
        })

        header = Text.assemble(
            "[ ",
            _text(options, _prog(), styler("prog-name")),
            " — ",
            _text(options, self.message.title(), styler("title")),
            " ]"
        )
        renders = [copy.replace(exception, ratio=2/3, **options) for exception in self.exceptions]

        if options.get("fancy", True):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})

    def derive(self, exceptions):
        return type(self)(exceptions, **self.options)


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise, exceptions are raised
      and warnings go through the warnings module.

    typical options
    - shell, fancy, colorful, deferred, hint, line, command.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    returns None when nothing is registered.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "CommandException",
    "DefinitionError",
    "StrayTextError",
    "UnknownDirectiveError",
    "UnclosedBlockError",
    "UnbalancedBlockError",
    "EmptyDirectiveError",
    "MalformedArgumentError",
    "UnknownTypeError",
    "UnbalancedParenthesisError",
    "TrailingContentError",
    "InvalidDefaultError",
    "RequiredDefaultError",
    "MisplacedVariadicError",
    "DuplicatedArgumentError",
    "InvalidFlagError",
    "UnknownProviderError",
    "RegistrationError",
    "MissingHookError",
    "HookSignatureError",
    "CommandWarning",
    "UnusedHookWarning",
    "RegistrationExit",
    "FaultCode",
    "trigger",
    "getdoc",
)
