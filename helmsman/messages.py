"""
User-facing message templates.

Every text the dispatcher sends to an actor comes from a Messages instance.
Templates use str.format fields:

- help-title          {name}
- help-entry          {usage} {help}
- hidden-subcommands  (no fields; used as the {help} of a collapsed entry)
- no-permission       {permission}
- players-only        (no fields)
- console-only        (no fields)
- command-error       (no fields)

Sources, lowest to highest precedence
1. the built-in defaults below;
2. a `__messages__` mapping defined in the host's __main__ module;
3. explicit overrides (a mapping, or a `key: value` file through Messages.load()).
"""
import logging
import os.path
from collections.abc import Mapping
from types import MappingProxyType

logger = logging.getLogger(__name__)

DEFAULTS = MappingProxyType({
    "help-title": "--[ help for {name} ]--",
    "help-entry": "{usage}: {help}",
    "hidden-subcommands": "[hidden subcommands]",
    "no-permission": "you do not have permission to run this command ({permission})",
    "players-only": "this command can only be executed as a player",
    "console-only": "this command can only be executed from console",
    "command-error": "an error was encountered in running this command, please notify an admin",
})


def _parse(lines):
    messages = {}
    for line in lines:
        if not (line := line.strip()) or line.startswith("#"):
            continue
        key, separator, value = line.partition(":")
        if not separator:
            logger.warning("ignoring message line without a ':' separator: %r", line)
            continue
        messages[key.strip()] = value.strip()
    return messages


class Messages(Mapping):
    """
    Read-only mapping of message key -> template, with format() helper.
    """

    def __init__(self, overrides=None, /):
        if overrides is not None and not isinstance(overrides, Mapping):
            raise TypeError("messages overrides must be a mapping")
        self._templates = dict(DEFAULTS) | dict(getattr(__import__("__main__"), "__messages__", {})) | dict(overrides or {})

    @classmethod
    def load(cls, path, /):
        """
        Read `key: value` lines from path; defaults missing from the file are
        appended to it (the file is created when absent).
        """
        text = ""
        if os.path.exists(path):
            with open(path, encoding="utf-8") as file:
                text = file.read()
        loaded = _parse(text.splitlines())

        if missing := [key for key in DEFAULTS if key not in loaded]:
            if directory := os.path.dirname(path):
                os.makedirs(directory, exist_ok=True)
            with open(path, "a", encoding="utf-8") as file:
                if text and not text.endswith("\n"):
                    file.write("\n")
                for key in missing:
                    file.write(f"{key}: {DEFAULTS[key]}\n")
            logger.info("wrote %d missing message default(s) to %s", len(missing), path)

        return cls(loaded)

    def format(self, key, /, **fields):
        return self._templates[key].format(**fields)

    def __getitem__(self, key):
        return self._templates[key]

    def __iter__(self):
        return iter(self._templates)

    def __len__(self):
        return len(self._templates)

    def __repr__(self):
        return f"messages({len(self)} templates)"


__all__ = (
    "Messages",
    "DEFAULTS",
)
