"""
C/C++ style comment removal for user.js and prefs.js files.

Comments are dropped, string literals are kept untouched and lines that end
up blank are removed. Used to compare two user.js files without the noise of
their (frequently changing) comment blocks.
"""
from enum import Enum
from typing import Iterator, List


class LexState(Enum):
    NORMAL = "normal"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    SINGLE_QUOTE = "single_quote"
    DOUBLE_QUOTE = "double_quote"


_QUOTE_STATES = {
    '"': LexState.DOUBLE_QUOTE,
    "'": LexState.SINGLE_QUOTE,
}


class CommentStripper:
    """Single pass scanner over one text.

    An instance holds the scan state for one text only; use a new instance
    (or the module level helpers) for every input.
    """

    def __init__(self, text: str):
        self.text = text
        self.state = LexState.NORMAL
        # Set while inside a string when the previous character was an
        # unescaped backslash.
        self.escaped = False
        self.quote = ''

    def iter_code_lines(self) -> Iterator[str]:
        """Yield the code of every output line, blank ones included."""
        self.state = LexState.NORMAL
        self.escaped = False
        text = self.text
        n = len(text)
        line: List[str] = []
        i = 0

        while i < n:
            ch = text[i]

            if self.state == LexState.NORMAL:
                if ch == '/' and i + 1 < n and text[i + 1] == '/':
                    self.state = LexState.LINE_COMMENT
                    i += 2
                    continue
                if ch == '/' and i + 1 < n and text[i + 1] == '*':
                    self.state = LexState.BLOCK_COMMENT
                    i += 2
                    continue
                if ch in _QUOTE_STATES:
                    self.state = _QUOTE_STATES[ch]
                    self.quote = ch
                    self.escaped = False
                line.append(ch)
                if ch == '\n':
                    yield ''.join(line)
                    line = []
                i += 1

            elif self.state == LexState.LINE_COMMENT:
                # The line terminator itself belongs to the code.
                if ch in '\r\n':
                    self.state = LexState.NORMAL
                    continue
                i += 1

            elif self.state == LexState.BLOCK_COMMENT:
                if ch == '*' and i + 1 < n and text[i + 1] == '/':
                    self.state = LexState.NORMAL
                    i += 2
                    continue
                i += 1

            else:
                line.append(ch)
                if self.escaped:
                    self.escaped = False
                elif ch == '\\':
                    self.escaped = True
                elif ch == self.quote:
                    self.state = LexState.NORMAL
                if ch == '\n':
                    yield ''.join(line)
                    line = []
                i += 1

        # An unterminated string is flushed as is; an unterminated block
        # comment has already swallowed the rest of the input.
        if line:
            yield ''.join(line)

    def iter_lines(self) -> Iterator[str]:
        for line in self.iter_code_lines():
            if line.strip():
                yield line


def iter_stripped_lines(text: str) -> Iterator[str]:
    """Lazily yield the non-blank code lines of ``text``, terminators kept."""
    return CommentStripper(text).iter_lines()


def strip_comments(text: str) -> str:
    """Return ``text`` without comments and without blank lines."""
    return ''.join(iter_stripped_lines(text))
