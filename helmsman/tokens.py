"""
Tokenizers for actor input and definition headers.

- tokenize(line): split actor input on unquoted spaces. A double quote toggles
  grouping and is dropped; a backslash makes the next character literal (a
  trailing backslash is kept as-is). Empty tokens only come from explicit "".
- split_header(text): split a definition header on spaces outside parentheses,
  so that `string:reason(no reason given)?` stays one piece.
"""


def tokenize(line, /):
    if not isinstance(line, str):
        raise TypeError("tokenize() argument must be a string")

    tokens = []
    current = []
    quoting = False
    quoted = False  # the current token contained a quote pair, so it survives even if empty
    chars = iter(enumerate(line))

    for index, char in chars:
        if char == "\\" and index + 1 < len(line):
            current.append(next(chars)[1])
            continue
        if char == '"':
            quoting = not quoting
            quoted = True
            continue
        if char == " " and not quoting:
            if current or quoted:
                tokens.append("".join(current))
            current, quoted = [], False
            continue
        current.append(char)

    if current or quoted:
        tokens.append("".join(current))
    return tokens


def split_header(text, /):
    if not isinstance(text, str):
        raise TypeError("split_header() argument must be a string")

    pieces = []
    current = []
    depth = 0

    for char in text:
        match char:
            case "(":
                depth += 1
            case ")":
                depth -= 1
            case " " | "\t" if depth <= 0:
                if current:
                    pieces.append("".join(current))
                current = []
                continue
        current.append(char)

    if current:
        pieces.append("".join(current))
    return pieces


__all__ = (
    "tokenize",
    "split_header",
)
