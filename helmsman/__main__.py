"""
Check a command definition file and print the tree it describes.

Usage:
    python -m helmsman FILE [--types NAME ...] [--providers NAME ...] [--messages PATH] [--verbose]

Custom types and context providers only exist in the host application, so the
names given here are registered as placeholders (string-like types, providers
that never supply a value). That is enough to read and lint any definition.

Exit codes:
    0   the file was read
    1   the file has a definition error (rendered on stderr)
"""
import argparse

from rich.pretty import pprint

from .argtypes import ArgType, TypeRegistry
from .arguments import ContextProvider
from .definitions import load
from .faults import DefinitionError, trigger
from .logs import configure_logging
from .messages import Messages


def _arguments(argv):
    parser = argparse.ArgumentParser(
        prog="helmsman",
        description="Read a command definition file and print its command tree.",
    )
    parser.add_argument("file", help="definition file to read")
    parser.add_argument("--types", nargs="*", default=[], metavar="NAME", help="placeholder argument types")
    parser.add_argument("--providers", nargs="*", default=[], metavar="NAME", help="placeholder context providers")
    parser.add_argument("--messages", metavar="PATH", help="messages file (missing defaults are written to it)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every block that is read")
    return parser.parse_args(argv)


def main(argv=None):
    arguments = _arguments(argv)
    configure_logging("DEBUG" if arguments.verbose else "WARNING")

    types = TypeRegistry(*(ArgType(name, str) for name in dict.fromkeys(arguments.types)))
    providers = [ContextProvider(name, lambda actor: None) for name in dict.fromkeys(arguments.providers)]
    messages = Messages() if arguments.messages is None else Messages.load(arguments.messages)

    try:
        commands = load(arguments.file, types, providers, messages)
    except DefinitionError as error:
        trigger(error, shell=True)
    else:
        pprint(commands, expand_all=True)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
