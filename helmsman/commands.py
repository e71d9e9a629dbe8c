"""
Helmsman command layer: the command tree, dispatch, help, and completion.

What this module provides
- Command: one node of a parsed command tree. It owns its declarations
  (arguments, flags, context/assert providers), its metadata (aliases,
  permission, sender kind, help, hook name) and its children, and keeps a
  non-owning back reference to its parent.
  • execute(actor, tokens): the recursive dispatch state machine.
  • complete(actor, tokens): the parallel completion walker.
  • show_help(actor): title plus the recursive help listing.
- CommandCollection: the top-level nodes of one definition source.
  • register(prefix, *hooks): bind hook names to handlers, verifying arity.
  • dispatch(actor, line) / suggest(actor, line): route a full input line by label.
  • find(hook) / show_help(hook, actor).

Dispatch (per node)
    permission → "help" literal → sender kind → match and invoke
        → children (exact alias on the first token) → fallback

- A missing permission, a sender-kind mismatch, an aborted match (absent
  context value), a failing provider or default, a handler error, and help
  output all count as "handled".
- Out of tokens: a root node shows help, any other node reports "unhandled".
- Fallback with tokens left: a node with a same-named sibling reports
  "unhandled" so the sibling gets its turn; otherwise help is shown.
- Roots of one collection are siblings of each other. A root with a
  same-named peer never falls back to help itself; when none of them handles
  the line, the collection shows the first one's help.

Lifecycle
- Nodes are built once by helmsman.definitions and never mutated afterwards,
  except for the handler, which register() binds exactly once, and the peer
  link a CommandCollection sets on its roots when it is created.

Quick start
    from helmsman import parse, Hooks, ConsoleActor

    hooks = Hooks()

    @hooks("greet")
    def greet(actor, name):
        actor.send_message(f"hello, {name}")

    commands = parse('''
        greet string:name {
            help says hello
            hook greet
        }
    ''')
    commands.register("demo", hooks)
    commands.dispatch(ConsoleActor(), "greet world")
"""
import functools
import inspect
import logging
import operator
import re
from collections.abc import Iterable, Mapping, Sequence
from inspect import Parameter

from . import matching
from .actors import Actor
from .arguments import Argument, Flag, ContextProvider, SenderKind
from .faults import *
from .matching import Verdict
from .messages import Messages
from .utils import *

logger = logging.getLogger(__name__)


class CommandType(type):
    """
    Metaclass that turns Command into an introspectable, read-only node type.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ for diagnostics and rich UI.
    - Expose selected fields as read-only properties using mirror() for all names
      listed in __introspectable__.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens).
    - __displayable__ narrows which properties are shown by __rich_repr__; the
      parent link is left out there so pretty printing does not loop.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - command(aliases=['give', 'g'], ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_aliases(cls, metadata):
    """
    Internal: aliases are one or more unique, non-empty strings without whitespace.
    """
    if isinstance(aliases := metadata["aliases"], str) or not isinstance(aliases, Iterable):
        raise TypeError(f"{cls.__typename__} 'aliases' must be an iterable of strings")

    sanitized = []
    for alias in aliases:
        if not isinstance(alias, str):
            raise TypeError(f"{cls.__typename__} aliases must be strings")
        elif not alias or re.search(r"\s", alias):
            raise ValueError(f"{cls.__typename__} aliases must be non-empty and without whitespace")
        elif alias in sanitized:
            raise ValueError(f"{cls.__typename__} aliases cannot contain duplicates")
        sanitized.append(alias)

    if not sanitized:
        raise ValueError(f"{cls.__typename__} must have at least one alias")
    metadata["aliases"] = tuple(sanitized)


def _sanitize_declarations(cls, metadata):
    """
    Internal: check the declaration lists and their cross-field invariants.

    - arguments: Argument instances; at most one variadic, and only as the last.
    - flags: Flag instances; no alias shared between two flags.
    - context/asserts: ContextProvider instances.
    - children: Command instances that do not belong to another node yet.
    """
    for key, kind in (("arguments", Argument), ("flags", Flag), ("context", ContextProvider),
                      ("asserts", ContextProvider), ("children", Command)):
        if not isinstance(metadata[key], Iterable):
            raise TypeError(f"{cls.__typename__} '{key}' must be iterable")
        items = tuple(metadata[key])
        if not all(isinstance(item, kind) for item in items):
            raise TypeError(f"{cls.__typename__} '{key}' must only contain {kind.__typename__} items")
        metadata[key] = items

    arguments = metadata["arguments"]
    if any(argument.variadic for argument in arguments[:-1]):
        raise ValueError(f"{cls.__typename__} variadic argument must be the last argument")

    names = [name for flag in metadata["flags"] for name in flag.names]
    if len(names) != len(set(names)):
        raise ValueError(f"{cls.__typename__} flags cannot share names")

    for child in metadata["children"]:
        if child.parent is not None:
            raise ValueError(f"{cls.__typename__} child {child.name!r} already has a parent")


def _sanitize_metadata(cls, metadata):
    for key in ("permission", "help", "hook"):
        if not isinstance(value := metadata[key], str | None):
            raise TypeError(f"{cls.__typename__} '{key}' must be a string")
        elif isinstance(value, str) and not value.strip():
            raise ValueError(f"{cls.__typename__} '{key}' cannot be empty")

    if not isinstance(metadata["kind"], SenderKind):
        raise TypeError(f"{cls.__typename__} 'kind' must be a sender-kind")


def _strip_quotes(token):
    return token.removeprefix('"').removesuffix('"')


def _as_tokens(tokens, /):
    """
    Normalize execute() input: a raw line is split on single spaces.
    """
    if isinstance(tokens, str):
        return tokens.strip().split(" ") if tokens.strip() else []
    return list(tokens)


class Command(metaclass=CommandType):
    """
    One node of a command tree.

    Properties
    - aliases: names the node answers to; the first one is the primary `name`.
    - arguments / flags: the node's header declarations, ordered by position.
    - context: providers whose values are appended to the handler call.
    - asserts: providers that must be present but add no value.
    - permission / kind: who may run the node (and, for permission, its subtree).
    - help: help text (repeated `help` lines are newline-joined).
    - hook: name the handler is bound under.
    - children / parent: the tree structure.
    - hidesub / notab / root: help collapsing, completion hiding, top-level marker.
    - handler: the bound callable, or None before registration.
    """

    __introspectable__ = (
        "aliases",
        "arguments",
        "flags",
        "context",
        "asserts",
        "permission",
        "kind",
        "help",
        "hook",
        "children",
        "parent",
        "hidesub",
        "notab",
        "root",
        "handler",
    )

    __displayable__ = (
        "aliases",
        "arguments",
        "flags",
        "context",
        "asserts",
        "permission",
        "kind",
        "help",
        "hook",
        "hidesub",
        "notab",
        "root",
        "children",
    )

    def __init__(
            self,
            aliases,
            /,
            arguments=(),
            flags=(),
            *,
            context=(),
            asserts=(),
            permission=None,
            kind=SenderKind.EVERYONE,
            help=None,
            hook=None,
            children=(),
            hidesub=False,
            notab=False,
            root=False,
            messages=Unset,
    ):
        metadata = {
            "aliases": aliases,
            "arguments": arguments,
            "flags": flags,
            "context": context,
            "asserts": asserts,
            "permission": permission,
            "kind": kind,
            "help": help,
            "hook": hook,
            "children": children,
            "hidesub": bool(hidesub),
            "notab": bool(notab),
            "root": bool(root),
        }
        _sanitize_aliases(type(self), metadata)
        _sanitize_declarations(type(self), metadata)
        _sanitize_metadata(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._parent = None
        self._peers = ()
        self._handler = None
        self._messages = Messages() if messages is Unset else messages

        for child in self._children:
            child._parent = self

    @property
    def name(self):
        return self._aliases[0]

    @property
    def expanded_name(self):
        """
        The primary names from the root down to this node, space separated.
        """
        if self._parent is None:
            return self.name
        return f"{self._parent.expanded_name} {self.name}"

    @property
    def usage(self):
        """
        Expanded name followed by the argument/flag signature (`give <int:amount> [player:target]`).
        """
        declarations = sorted((*self._arguments, *self._flags), key=lambda declaration: declaration.position)
        return " ".join((self.expanded_name, *map(str, declarations)))

    def _twinned(self):
        """
        Whether a sibling (or, for a root, a peer in its collection) shares the primary name.
        """
        siblings = self._peers if self._parent is None else self._parent._children
        return any(sibling is not self and sibling.name == self.name for sibling in siblings)

    def permits(self, actor, /):
        return self._permission is None or actor.has_permission(self._permission)

    def walk(self):
        """
        Yield this node and its descendants, depth-first, in declaration order.
        """
        yield self
        for child in self._children:
            yield from child.walk()

    def _bind(self, handler):
        if self._handler is not None:
            raise HookSignatureError(
                f"command {self.expanded_name!r} is already bound to a handler",
                command=self,
                hint="register a collection only once",
            )
        self._handler = handler

    def help_lines(self, actor, /, level=0):
        """
        Help entries visible to the actor, depth-first.

        A node the actor may not run contributes nothing, subtree included.
        With hidesub set below the top level, children collapse into one
        placeholder entry (or disappear behind the node's own entry).
        """
        if not self.permits(actor):
            return []

        lines = []
        if self._help is not None:
            lines.append(self._messages.format("help-entry", usage=self.usage, help=self._help))

        if self._hidesub and level != 0:
            if not lines:
                return [self._messages.format("help-entry", usage=self.usage, help=self._messages["hidden-subcommands"])]
            return lines

        for child in self._children:
            lines.extend(child.help_lines(actor, level + 1))
        return lines

    def show_help(self, actor, /):
        actor.send_message(self._messages.format("help-title", name=self.name))
        if lines := self.help_lines(actor):
            actor.send_message("\n".join(lines))

    def _invoke(self, actor, tokens):
        """
        Run the matcher and the handler; None means the tokens did not match.
        """
        try:
            outcome = matching.match(self, actor, tokens)
            match outcome.verdict:
                case Verdict.MATCHED:
                    logger.debug("invoking %s with %r", self.hook, outcome.values)
                    self._handler(actor, *outcome.values)
                    return True
                case Verdict.ABORTED:
                    if outcome.message is None:
                        self.show_help(actor)
                    else:
                        actor.send_message(outcome.message)
                    return True
                case Verdict.FAILED:
                    actor.send_message(self._messages["command-error"])
                    return True
        except Exception:
            logger.exception("command %r failed for %r", self.expanded_name, actor)
            actor.send_message(self._messages["command-error"])
            return True
        return None

    def execute(self, actor, tokens, /):
        """
        Dispatch tokens (a list, or a raw line split on spaces) against this node.

        Returns True when the invocation was handled here or below (including
        denials, messages and help), False when a sibling should get a turn.
        """
        tokens = _as_tokens(tokens)
        logger.debug("dispatching %r to %r", tokens, self.expanded_name)

        if not self.permits(actor):
            actor.send_message(self._messages.format("no-permission", permission=self._permission))
            return True

        if tokens and tokens[0].lower() == "help":
            self.show_help(actor)
            return True

        if not self._kind.admits(actor.kind()):
            actor.send_message(self._messages["players-only" if self._kind is SenderKind.PLAYER else "console-only"])
            return True

        if self._handler is not None and self._invoke(actor, tokens):
            return True

        if not tokens:
            if self._root and not self._twinned():
                self.show_help(actor)
                return True
            return False

        head, rest = tokens[0], tokens[1:]
        for child in self._children:
            if head in child._aliases and child.execute(actor, rest):
                return True

        if self._twinned():
            return False

        self.show_help(actor)
        return True

    def _positional_index(self, tokens):
        """
        Index of the positional slot the last token fills, skipping flag tokens.
        """
        index = 0
        iterator = iter(tokens[:-1])
        for token in iterator:
            flag = next((flag for flag in self._flags if flag.matches(token)), None)
            if flag is None:
                index += 1
            elif not flag.boolean:
                next(iterator, None)
        return index

    def complete(self, actor, tokens, /):
        """
        Completion candidates for the last token (a list, or a raw line split on spaces).

        Sources, in order: completions of permitted children whose alias equals
        the first token, primary names of permitted children (first token only),
        flag names (when the token starts with '-'), and candidates supplied by
        the type of the positional slot being typed.
        """
        if isinstance(tokens, str):
            tokens = tokens.split(" ")
        if not (tokens := list(tokens)):
            return []

        completions = []
        head = tokens[0].lower()

        for child in self._children:
            if child.permits(actor) and any(alias.lower() == head for alias in child._aliases):
                completions.extend(child.complete(actor, tokens[1:]))

        if len(tokens) == 1:
            for child in self._children:
                if child.permits(actor) and not child._notab and child.name.lower().startswith(head):
                    completions.append(child.name)

        partial = _strip_quotes(tokens[-1])

        if partial.startswith("-"):
            for flag in self._flags:
                if not any(flag.matches(token) for token in tokens[:-1]):
                    completions.extend(name for name in flag.names if name.startswith(partial) and name != partial)

        if (index := self._positional_index(tokens)) < len(self._arguments):
            for candidate in self._arguments[index].type.complete(actor):
                if candidate.lower().startswith(partial.lower()) and candidate != partial:
                    completions.append(f'"{candidate}"' if re.search(r"\s", candidate) else candidate)

        return list(dict.fromkeys(completions))


def _verify(command, handler):
    """
    Check a handler against a node; returns a HookSignatureError or None.

    The handler must take the actor first, then one positional parameter per
    argument, flag and context provider (asserts add none). A *args parameter
    may absorb any tail; required keyword-only parameters are rejected. When
    the first parameter is annotated with a class, it must satisfy Actor.
    """
    expected = 1 + len(command.arguments) + len(command.flags) + len(command.context)

    if not callable(handler):
        return HookSignatureError(f"handler for hook {command.hook!r} is not callable", command=command)
    try:
        signature = inspect.signature(handler, eval_str=True)
    except NameError:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        return HookSignatureError(f"handler for hook {command.hook!r} is not inspectable", command=command)

    parameters = list(signature.parameters.values())
    positional = [parameter for parameter in parameters if parameter.kind in (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)]
    variadic = any(parameter.kind is Parameter.VAR_POSITIONAL for parameter in parameters)

    if any(parameter.kind is Parameter.KEYWORD_ONLY and parameter.default is Parameter.empty for parameter in parameters):
        return HookSignatureError(
            f"handler for hook {command.hook!r} has required keyword-only parameters",
            command=command,
        )

    if len(positional) > expected or (len(positional) < expected and not variadic):
        return HookSignatureError(
            f"handler for hook {command.hook!r} takes {len(positional)} positional parameter(s) "
            f"but command {command.expanded_name!r} passes {expected}",
            command=command,
            hint=f"expected (actor, {", ".join(_parameter_names(command)) or "no other parameters"})",
        )

    if positional and isinstance(annotation := positional[0].annotation, type) and annotation is not Parameter.empty:
        if annotation is not object and not issubclass(annotation, Actor):
            return HookSignatureError(
                f"handler for hook {command.hook!r} must accept the actor as its first parameter",
                command=command,
            )
    return None


def _parameter_names(command):
    declarations = sorted((*command.arguments, *command.flags), key=lambda declaration: declaration.position)
    # flags are named after their longest alias
    names = [
        declaration.name if isinstance(declaration, Argument) else max(declaration.names, key=len).lstrip("-")
        for declaration in declarations
    ]
    return names + [provider.name for provider in command.context]


class CommandCollection(Sequence):
    """
    The top-level commands read from one definition source.
    """
    __typename__ = "command-collection"

    def __init__(self, commands=(), /):
        commands = tuple(commands)
        if not all(isinstance(command, Command) for command in commands):
            raise TypeError(f"{self.__typename__} items must be commands")
        if any(command.parent is not None or command._peers for command in commands):
            raise ValueError(f"{self.__typename__} items must be unattached top-level commands")
        self._commands = commands
        self._prefix = None
        for command in commands:
            command._peers = commands

    @property
    def commands(self):
        return list(self._commands)

    @property
    def prefix(self):
        return self._prefix

    def __getitem__(self, index):
        return self._commands[index]

    def __len__(self):
        return len(self._commands)

    def __rich_repr__(self):
        yield "prefix", self._prefix
        yield "commands", list(self._commands)

    def __repr__(self):
        return f"{self.__typename__}(prefix={self._prefix!r}, commands={list(self._commands)!r})"

    def walk(self):
        for command in self._commands:
            yield from command.walk()

    def register(self, prefix, /, *hooks):
        """
        Bind every node's hook to a handler from the given hook tables.

        Tables are searched in order; the first one defining the name wins.
        Every missing or ill-shaped handler is collected and raised together
        as RegistrationExit before anything is bound. Table entries that no
        node uses produce an UnusedHookWarning.
        """
        if not isinstance(prefix, str):
            raise TypeError(f"{self.__typename__} prefix must be a string")
        elif not prefix or re.search(r"[\s:]", prefix):
            raise ValueError(f"{self.__typename__} prefix must be non-empty, without whitespace or ':'")
        if not all(isinstance(table, Mapping) for table in hooks):
            raise TypeError(f"{self.__typename__} hook tables must be mappings")

        bindings = []
        errors = []
        used = set()

        for command in self.walk():
            if command.hook is None:
                continue
            handler = next((table[command.hook] for table in hooks if command.hook in table), Unset)
            if handler is Unset:
                errors.append(MissingHookError(
                    f"no handler for hook {command.hook!r} of command {command.expanded_name!r}",
                    command=command,
                    hint="add it to one of the hook tables passed to register()",
                ))
                continue
            used.add(command.hook)
            if command.handler is not None:
                errors.append(HookSignatureError(
                    f"command {command.expanded_name!r} is already bound to a handler",
                    command=command,
                    hint="register a collection only once",
                ))
            elif (error := _verify(command, handler)) is not None:
                errors.append(error)
            else:
                bindings.append((command, handler))

        if errors:
            raise RegistrationExit(errors)

        for command, handler in bindings:
            command._bind(handler)
        self._prefix = prefix
        logger.info("registered %d handler(s) for %d command(s) under %r", len(bindings), len(self), prefix)

        for name in dict.fromkeys(name for table in hooks for name in table):
            if name not in used:
                trigger(UnusedHookWarning(f"hook {name!r} is not used by any command"))

    def find(self, hook, /):
        """
        The first node (depth-first) whose hook name is `hook`, or None.
        """
        for command in self.walk():
            if command.hook == hook:
                return command
        return None

    def show_help(self, hook, actor, /):
        if (command := self.find(hook)) is None:
            raise KeyError(f"no command has the hook {hook!r}")
        command.show_help(actor)

    def _labelled(self, label):
        label = label.lower()
        for command in self._commands:
            for alias in command.aliases:
                if label == alias.lower() or (self._prefix and label == f"{self._prefix}:{alias}".lower()):
                    yield command
                    break

    def dispatch(self, actor, line, /):
        """
        Execute a full input line; its first token is the command label.

        Labels are a root's aliases or `prefix:alias`, case-insensitive.
        Roots answering to the label are tried in order; when none handles
        the line, the first one shows its help. Returns False when no root
        answers to the label.
        """
        if not (tokens := _as_tokens(line)):
            return False
        label, rest = tokens[0], tokens[1:]
        if not (roots := list(self._labelled(label))):
            return False
        if not any(command.execute(actor, rest) for command in roots):
            roots[0].show_help(actor)
        return True

    def suggest(self, actor, line, /):
        """
        Completion candidates for a full input line (label first).
        """
        tokens = line.split(" ")
        if len(tokens) == 1:
            return list(dict.fromkeys(
                command.name for command in self._commands
                if command.permits(actor) and not command.notab and command.name.lower().startswith(tokens[0].lower())
            ))
        completions = []
        for command in self._labelled(tokens[0]):
            if command.permits(actor):
                completions.extend(command.complete(actor, tokens[1:]))
        return list(dict.fromkeys(completions))


__all__ = (
    # Classes
    "Command",
    "CommandCollection",
)

del CommandType
