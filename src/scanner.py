"""Line scanning for tinysh.

Turns one raw input line into the word tokens a command is built from.
Only field splitting and quote/backslash removal happen here; there is
no variable expansion, globbing or operator handling.

Quoting rules:
- '...'  everything literal up to the next single quote
- "..."  literal, except a backslash before $ ` " or \\ is dropped
         (any other backslash, including \\n, is kept as typed)
- bare   a backslash takes the next character literally

Quoted and unquoted segments that touch each other form a single word,
so ``hey"there how"`` scans to the one word ``heythere how``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Tuple

WORD = 'WORD'
END = 'END'

# Characters that separate words outside of quotes
SEPARATORS = frozenset(' \t\n')

# Characters a backslash escapes inside double quotes
DOUBLE_QUOTE_ESCAPES = frozenset('$`"\\')

# Opening character -> quoting context
QUOTE_CONTEXTS: Dict[str, str] = {"'": 'single', '"': 'double'}


@dataclass(frozen=True)
class Token:
    """A scanned word, or the END marker closing every scan."""
    kind: str
    text: str = ''


# --- Errors ---

class ScanError(ValueError):
    """The line cannot be split into words; nothing from it may run."""

    message = 'cannot scan line'

    def __init__(self, position: int) -> None:
        # position: index of the opening quote or the dangling backslash
        self.position = position
        super().__init__(self.message)


class UnterminatedSingleQuote(ScanError):
    message = "unexpected EOF while looking for matching `''"


class UnterminatedDoubleQuote(ScanError):
    message = 'unexpected EOF while looking for matching `"\''


class TrailingBackslash(ScanError):
    message = 'trailing backslash with nothing to escape'


# --- Segment readers ---
#
# Each reader takes the line and a cursor and returns the processed text
# of one segment along with the cursor just past it. Quoted readers are
# given the position right after the opening quote.

def read_single_quoted(line: str, pos: int) -> Tuple[str, int]:
    end = line.find("'", pos)
    if end == -1:
        raise UnterminatedSingleQuote(pos - 1)
    return line[pos:end], end + 1


def read_double_quoted(line: str, pos: int) -> Tuple[str, int]:
    out: List[str] = []
    start = pos - 1
    n = len(line)
    while pos < n:
        ch = line[pos]
        if ch == '"':
            return ''.join(out), pos + 1
        if ch == '\\' and pos + 1 < n:
            nxt = line[pos + 1]
            if nxt in DOUBLE_QUOTE_ESCAPES:
                out.append(nxt)
            else:
                # \n stays a two-character sequence, no newline here
                out.append(ch)
                out.append(nxt)
            pos += 2
            continue
        out.append(ch)
        pos += 1
    raise UnterminatedDoubleQuote(start)


def read_unquoted(line: str, pos: int) -> Tuple[str, int]:
    """Read a bare run up to a separator, a quote or the end of the line."""
    out: List[str] = []
    n = len(line)
    while pos < n:
        ch = line[pos]
        if ch in SEPARATORS or ch in QUOTE_CONTEXTS:
            break
        if ch == '\\':
            if pos + 1 >= n:
                raise TrailingBackslash(pos)
            out.append(line[pos + 1])
            pos += 2
            continue
        out.append(ch)
        pos += 1
    return ''.join(out), pos


Reader = Callable[[str, int], Tuple[str, int]]

READERS: Dict[str, Reader] = {
    'single': read_single_quoted,
    'double': read_double_quoted,
    'unquoted': read_unquoted,
}


# --- Scanning ---

def scan(line: str) -> List[Token]:
    """Split ``line`` into WORD tokens followed by a single END token.

    Raises a ScanError subclass on an unterminated quote or a trailing
    backslash; no tokens are returned in that case.
    """
    tokens: List[Token] = []
    pos = 0
    n = len(line)
    while True:
        while pos < n and line[pos] in SEPARATORS:
            pos += 1
        if pos >= n:
            break
        # A word only ends at a separator or the end of the line,
        # never at a quote boundary.
        parts: List[str] = []
        while pos < n and line[pos] not in SEPARATORS:
            ch = line[pos]
            context = QUOTE_CONTEXTS.get(ch)
            if context is None:
                text, pos = READERS['unquoted'](line, pos)
            else:
                text, pos = READERS[context](line, pos + 1)
            parts.append(text)
        tokens.append(Token(WORD, ''.join(parts)))
    tokens.append(Token(END))
    return tokens


# --- Public helpers ---

def split_words(line: str) -> List[str]:
    return [t.text for t in scan(line) if t.kind == WORD]


def format_tokens(tokens: Iterable[Token]) -> str:
    """Render tokens one per line (debug / test aid)."""
    lines: List[str] = []
    for t in tokens:
        if t.kind == WORD:
            lines.append(f"WORD  {t.text!r}")
        else:
            lines.append(t.kind)
    return "\n".join(lines)
