"""
Explicit hook tables.

A hook table maps the `hook <name>` of a command definition to the function
that runs it. Any Mapping works with CommandCollection.register(); Hooks adds a
decorator form:

    hooks = Hooks()

    @hooks("give")
    def give(actor, amount, target):
        ...
"""


class Hooks(dict):
    def __call__(self, name, /):
        if not isinstance(name, str):
            raise TypeError("@hooks() argument must be a string")
        elif not (name := name.strip()):
            raise ValueError("@hooks() argument cannot be empty")

        def wrapper(callback, /):
            if not callable(callback):
                raise TypeError("@hooks() must be applied to a callable")
            if name in self:
                raise ValueError(f"hook {name!r} is already defined")
            self[name] = callback
            return callback

        return wrapper

    def __repr__(self):
        return f"hooks({", ".join(map(repr, self))})"


__all__ = (
    "Hooks",
)
