# tradethrottle/ingest/tokenizer.py
"""Schema-agnostic CSV tokenizer."""
import re

_LINE_BREAK_RE = re.compile(r"\r?\n")


def _split_line(line: str) -> list[str]:
    cells: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    cells.append("".join(current).strip())
    return cells


def tokenize_csv(text: str) -> list[list[str]]:
    """Split CSV text into rows of trimmed cells.

    Quotes toggle quoted state, a doubled quote inside a quoted field is a
    literal quote, and commas only separate fields outside quotes. Quoted
    fields do not span lines. Malformed quoting never raises; characters are
    accumulated best-effort.

    Args:
        text: Raw CSV text.

    Returns:
        Rows in file order; empty list for blank input.
    """
    text = text.lstrip("\ufeff").strip()
    if not text:
        return []
    return [_split_line(line) for line in _LINE_BREAK_RE.split(text)]
