"""
Helmsman definition reader: DSL text -> tree of commands.

Grammar (one directive per line, blank lines and `#` comments ignored)

    give,g int:amount player:target? -s,--silent {
        help gives money to a player
        permission economy.give
        users player
        context wallet
        hook give
        all int:amount {
            hook give_all
        }
    }

Header tokens (split on spaces outside parentheses)
- `type:name` arguments, with modifiers read from the end of the token:
  `...` (variadic), `(value)` (default), then `*?`/`?*`, `*` and `?`.
  `(context name)` defers the default to a context provider at match time and
  a leading backslash keeps a literal that would otherwise read as such.
- `-f,--force` boolean flags and `type:-n,--name` typed flags.

Directives
- help, permission, user/users, context, assert, hidesub, notab, hook.
- `context` and `assert` replace any earlier list of the same directive.

Every problem raises a DefinitionError subclass carrying the 1-based line; the
whole read aborts and no partial tree is returned.
"""
import difflib
import logging
from collections.abc import Iterable, Mapping

from .argtypes import registry_of
from .arguments import Argument, Flag, ContextProvider, SenderKind
from .commands import Command, CommandCollection
from .faults import *
from .messages import Messages
from .tokens import split_header
from .utils import *

logger = logging.getLogger(__name__)

_MARKERS = "?*"


def _lines(source):
    """
    Normalize a source to a list of raw lines (without line terminators).
    """
    if isinstance(source, str):
        return source.splitlines()
    if hasattr(source, "read"):
        return source.read().splitlines()
    if isinstance(source, Iterable):
        return [line.rstrip("\r\n") for line in source]
    raise TypeError("parse() source must be a string, an iterable of lines or a text file")


def _providers(providers):
    """
    Normalize providers: a mapping name -> provider or an iterable of providers.
    """
    if isinstance(providers, Mapping):
        providers = providers.values()
    table = {}
    for provider in providers:
        if not isinstance(provider, ContextProvider):
            raise TypeError("providers must be context-provider instances")
        if provider.name in table:
            raise ValueError(f"duplicate context provider {provider.name!r}")
        table[provider.name] = provider
    return table


def _ignorable(line):
    return not line or line.startswith("#")


def _suggest(name, choices, what):
    if suggestions := difflib.get_close_matches(name, list(choices), 1):
        return f"did you mean {suggestions[0]!r}?"
    if choices:
        return f"known {what}: {", ".join(map(repr, choices))}"
    return f"no {what} are registered"


def _lookup_provider(name, providers, line):
    try:
        return providers[name]
    except KeyError:
        raise UnknownProviderError(
            f"unknown context provider {name!r}",
            line=line,
            hint=_suggest(name, providers, "providers"),
        ) from None


def _split_default(piece, rest, line):
    """
    Cut the parenthesized default out of `rest`; returns (rest, default).

    Only modifier markers may follow the closing parenthesis.
    """
    if (start := rest.find("(")) == -1:
        if ")" in rest:
            raise UnbalancedParenthesisError(f"unexpected ')' in {piece!r}", line=line)
        return rest, Unset

    depth = 0
    for index in range(start, len(rest)):
        if rest[index] == "(":
            depth += 1
        elif rest[index] == ")":
            depth -= 1
            if depth == 0:
                break
    else:
        raise UnbalancedParenthesisError(
            f"unbalanced parenthesis in {piece!r}",
            line=line,
            hint="close the default value with ')'",
        )

    suffix = rest[index + 1:]
    if suffix.strip(_MARKERS):
        raise TrailingContentError(
            f"unexpected {suffix!r} after the default value of {piece!r}",
            line=line,
            hint="only '?' and '*' may follow a default value",
        )
    return rest[:start] + suffix, rest[start + 1:index]


def _split_markers(rest):
    """
    Strip `*?`/`?*`, `*` and `?` (in this order); returns (name, hidden, optional).
    """
    hidden = optional = False
    if rest.endswith(("*?", "?*")):
        return rest[:-2], True, True
    if rest.endswith("*"):
        hidden, rest = True, rest[:-1]
    if rest.endswith("?"):
        optional, rest = True, rest[:-1]
    return rest, hidden, optional


def _default(type, text, providers, piece, line):
    """
    Build the default callable of a declaration from its parenthesized text.
    """
    if text.startswith("context "):
        provider = _lookup_provider(text.removeprefix("context ").strip(), providers, line)
        return provider.provide

    literal = text.removeprefix("\\")
    try:
        value = type.convert(None, literal)
    except Exception as error:
        raise InvalidDefaultError(
            f"default value {literal!r} of {piece!r} is not a valid {type.name}",
            line=line,
        ) from error
    if value is None:
        raise InvalidDefaultError(f"default value {literal!r} of {piece!r} is not a valid {type.name}", line=line)

    def default(actor):
        return value
    return default


def _declaration(piece, position, types, providers, line):
    """
    Read one header token into an Argument or a Flag.
    """
    paren = piece.find("(")
    colon = piece.find(":", 0, len(piece) if paren == -1 else paren)

    if colon == -1:
        if piece.startswith("-"):
            return _flag(types["boolean"], piece, piece, position, providers, line)
        raise MalformedArgumentError(
            f"malformed argument {piece!r} at {ordinal(position + 1)} position",
            line=line,
            hint="arguments are written type:name (for example int:amount)",
        )

    typename, rest = piece[:colon], piece[colon + 1:]
    if (type := types.get(typename)) is None:
        raise UnknownTypeError(
            f"unknown type {typename!r} in {piece!r}",
            line=line,
            hint=_suggest(typename, types, "types"),
        )

    if rest.startswith("-"):
        return _flag(type, rest, piece, position, providers, line)

    variadic = rest.endswith("...")
    rest, default = _split_default(piece, rest.removesuffix("..."), line)
    name, hidden, optional = _split_markers(rest)

    if "(" in name or ")" in name:
        raise UnbalancedParenthesisError(f"misplaced parenthesis in {piece!r}", line=line)
    if not name or any(char in name for char in ":,?*"):
        raise MalformedArgumentError(
            f"malformed argument name {name!r} in {piece!r}",
            line=line,
            hint="names cannot be empty nor contain ':', ',', '?' or '*'",
        )
    if default is not Unset and not optional:
        raise RequiredDefaultError(
            f"required argument {name!r} cannot have a default value",
            line=line,
            hint=f"mark it optional ({typename}:{name}?({default}))",
        )

    return Argument(
        type,
        name,
        position,
        optional=optional,
        variadic=variadic,
        hidden=hidden or name == type.name,
        default=None if default is Unset else _default(type, default, providers, piece, line),
    )


def _flag(type, rest, piece, position, providers, line):
    rest, default = _split_default(piece, rest, line)
    if rest.endswith("...") or rest.endswith(tuple(_MARKERS)):
        raise InvalidFlagError(
            f"flag {piece!r} cannot be optional, variadic or hidden",
            line=line,
            hint="flags are always optional; remove the trailing markers",
        )
    try:
        return Flag(
            type,
            rest.split(","),
            position,
            default=None if default is Unset else _default(type, default, providers, piece, line),
        )
    except (TypeError, ValueError) as error:
        raise InvalidFlagError(f"invalid flag {piece!r}: {error}", line=line) from error


def _header(text, types, providers, line):
    """
    Read a block header (without its '{') into (aliases, arguments, flags).
    """
    if not (pieces := split_header(text)):
        raise MalformedArgumentError("command block has no name", line=line)

    aliases = pieces[0].split(",")
    if not all(aliases) or any(char in pieces[0] for char in ":()"):
        raise MalformedArgumentError(
            f"malformed command name {pieces[0]!r}",
            line=line,
            hint="aliases are comma separated words (for example give,g)",
        )
    if len(set(aliases)) != len(aliases):
        raise MalformedArgumentError(f"command {aliases[0]!r} repeats an alias", line=line)

    arguments = []
    flags = []
    names = set()
    for position, piece in enumerate(pieces[1:]):
        declaration = _declaration(piece, position, types, providers, line)
        declared = declaration.names if isinstance(declaration, Flag) else (declaration.name,)
        if duplicates := names.intersection(declared):
            raise DuplicatedArgumentError(
                f"{next(iter(duplicates))!r} is declared twice in command {aliases[0]!r}",
                line=line,
            )
        names.update(declared)

        if isinstance(declaration, Flag):
            flags.append(declaration)
            continue
        if arguments and arguments[-1].variadic:
            raise MisplacedVariadicError(
                f"variadic argument {arguments[-1].name!r} must be the last argument of {aliases[0]!r}",
                line=line,
                hint=f"move {piece!r} before it",
            )
        arguments.append(declaration)

    return aliases, arguments, flags


def parse_block(lines, start, /, *, types, providers, messages, root=False):
    """
    Read the block whose header is lines[start].

    Returns the node and the index of the line just past its closing brace.
    Nested blocks are read recursively; nothing is shared between calls.
    """
    number = start + 1
    header = lines[start].strip()
    if not header.endswith("{"):
        raise StrayTextError(f"expected a block header, found {header!r}", line=number)

    aliases, arguments, flags = _header(header.removesuffix("{").strip(), types, providers, number)

    help = []
    options = {
        "permission": None,
        "kind": SenderKind.EVERYONE,
        "hook": None,
        "context": (),
        "asserts": (),
        "hidesub": False,
        "notab": False,
    }
    children = []

    index = start + 1
    while index < len(lines):
        line = lines[index].strip()
        number = index + 1

        if _ignorable(line):
            index += 1
            continue

        if line == "}":
            command = Command(
                aliases,
                arguments,
                flags,
                help="\n".join(help) if help else None,
                children=children,
                root=root,
                messages=messages,
                **options,
            )
            logger.debug("read command %r (lines %d-%d)", command.expanded_name, start + 1, number)
            return command, index + 1

        if line.endswith("{"):
            child, index = parse_block(lines, index, types=types, providers=providers, messages=messages)
            children.append(child)
            continue

        directive, _, value = line.partition(" ")
        value = value.strip()
        match directive:
            case "help" | "permission" | "hook" | "context" | "assert" if not value:
                raise EmptyDirectiveError(
                    f"directive {directive!r} needs a value",
                    line=number,
                    hint=f"write it as '{directive} <value>'",
                )
            case "help":
                help.append(value)
            case "permission":
                options["permission"] = value
            case "hook":
                options["hook"] = value
            case "user" | "users":
                options["kind"] = SenderKind.parse(value)
            case "context":
                options["context"] = tuple(_lookup_provider(name, providers, number) for name in value.split())
            case "assert":
                options["asserts"] = tuple(_lookup_provider(name, providers, number) for name in value.split())
            case "hidesub" | "notab" if not value:
                options[directive] = True
            case "hidesub" | "notab":
                raise UnknownDirectiveError(f"directive {directive!r} takes no value", line=number)
            case "}":
                raise StrayTextError(f"unexpected text after '}}': {line!r}", line=number)
            case _:
                raise UnknownDirectiveError(
                    f"unknown directive {directive!r} in command {aliases[0]!r}",
                    line=number,
                    hint=_suggest(directive, ("help", "permission", "user", "users", "context",
                                              "assert", "hidesub", "notab", "hook"), "directives"),
                )
        index += 1

    raise UnclosedBlockError(
        f"command {aliases[0]!r} is never closed",
        line=start + 1,
        hint="add a matching '}'",
    )


def parse(source, /, types=Unset, providers=(), messages=Unset):
    """
    Read every top-level block of a definition source.

    Parameters
    - source: a string, an iterable of lines, or an open text file.
    - types: a TypeRegistry or an iterable of extra ArgType (built-ins always included).
    - providers: ContextProvider instances (or a mapping of them) usable by
      `context`, `assert` and `(context name)` defaults.
    - messages: Messages shared by every node (defaults to Messages()).
    """
    lines = _lines(source)
    types = registry_of(types)
    providers = _providers(providers)
    messages = Messages() if messages is Unset else messages

    commands = []
    index = 0
    while index < len(lines):
        line = lines[index].strip()
        if _ignorable(line):
            index += 1
            continue
        if line == "}":
            raise UnbalancedBlockError("'}' without a matching block", line=index + 1)
        if not line.endswith("{"):
            raise StrayTextError(
                f"unexpected text outside of a command block: {line!r}",
                line=index + 1,
                hint="directives belong inside a 'name {' ... '}' block",
            )
        command, index = parse_block(lines, index, types=types, providers=providers, messages=messages, root=True)
        commands.append(command)

    logger.debug("read %d top-level command(s) from %d line(s)", len(commands), len(lines))
    return CommandCollection(commands)


def load(path, /, types=Unset, providers=(), messages=Unset):
    """
    parse() the file at path (read as UTF-8).
    """
    with open(path, encoding="utf-8") as file:
        return parse(file, types, providers, messages)


__all__ = (
    # Functions
    "parse",
    "parse_block",
    "load",
)
