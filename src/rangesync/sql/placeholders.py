"""
Positional placeholder handling.

All SQL in rangesync is assembled with qmark (``?``) placeholders. Drivers
using the ``format`` paramstyle (psycopg2) get the text converted right
before execution. Quoted literals and identifiers are skipped while
scanning, so a ``?`` inside ``'...'`` or ``"..."`` is never a placeholder.
Neither is one inside a ``--`` line comment or a ``/* */`` block comment,
nor, for dialects with bracket quoting, inside ``[...]``.
"""

from collections.abc import Iterator

_QUOTE_PAIRS = {"'": "'", '"': '"'}
_BRACKET_PAIRS = {**_QUOTE_PAIRS, "[": "]"}


def _scan(sql: str, brackets: bool = False) -> Iterator[tuple[int, bool]]:
    """Yield ``(index, quoted)`` for every character of ``sql``; comments count as quoted."""
    pairs = _BRACKET_PAIRS if brackets else _QUOTE_PAIRS
    closing = None
    i = 0
    while i < len(sql):
        char = sql[i]
        if closing is None:
            if char in pairs:
                closing = pairs[char]
            elif sql.startswith("--", i):
                closing = "\n"
            elif sql.startswith("/*", i):
                closing = "*/"
                yield i, True
                i += 1
            yield i, closing is not None
        elif closing == "*/":
            yield i, True
            if sql.startswith("*/", i):
                i += 1
                yield i, True
                closing = None
        else:
            yield i, True
            if char == closing:
                # Doubled closing quote is an escaped quote, stay inside
                if closing != "\n" and i + 1 < len(sql) and sql[i + 1] == closing:
                    i += 1
                    yield i, True
                else:
                    closing = None
        i += 1


def count_placeholders(sql: str, brackets: bool = False) -> int:
    """Count ``?`` placeholders outside quoted sections and comments."""
    return sum(1 for i, quoted in _scan(sql, brackets) if not quoted and sql[i] == "?")


def qmark_to_format(sql: str) -> str:
    """
    Convert qmark SQL to the ``format`` paramstyle.

    ``?`` outside quotes and comments becomes ``%s``; every literal ``%`` is
    doubled, since the driver interpolates the whole statement text.
    """
    parts = []
    for i, quoted in _scan(sql):
        char = sql[i]
        if char == "%":
            parts.append("%%")
        elif char == "?" and not quoted:
            parts.append("%s")
        else:
            parts.append(char)
    return "".join(parts)
