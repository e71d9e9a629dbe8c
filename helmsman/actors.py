"""
The actor abstraction: whoever invokes a command.

Hosts implement Actor for their own session objects; ConsoleActor is a small
rich-backed implementation for terminals, demos and `python -m helmsman`.
"""
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.text import Text

from .arguments import SenderKind
from .utils import Unset


@runtime_checkable
class Actor(Protocol):
    def has_permission(self, permission: str, /) -> bool: ...
    def kind(self) -> SenderKind: ...
    def send_message(self, text: str, /) -> None: ...


class ConsoleActor:
    """
    Actor printing to a rich console.

    permissions=Unset grants everything; otherwise only the listed permissions
    are held.
    """

    def __init__(self, console=Unset, /, *, permissions=Unset, kind=SenderKind.CONSOLE):
        self.console = Console() if console is Unset else console
        self.permissions = permissions if permissions is Unset else frozenset(permissions)
        self._kind = kind

    def has_permission(self, permission, /):
        return self.permissions is Unset or permission in self.permissions

    def kind(self):
        return self._kind

    def send_message(self, text, /):
        self.console.print(Text(text))

    def __repr__(self):
        return f"console-actor(kind={self._kind.value!r})"


__all__ = (
    "Actor",
    "ConsoleActor",
)
