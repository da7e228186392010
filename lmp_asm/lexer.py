"""
Lexer / Tokenizer for Little Man Plus assembly.

Converts source text into a flat token stream for the parser. The
language is line oriented, so newlines are tokens. Recognized:

    NUMBER   decimal digits                  42
    IDENT    [A-Za-z_][A-Za-z0-9_]*          loop, ADD, v0
    POINTER  '@' followed by an identifier   @pos
    NEWLINE  end of a line
    EOF      end of input

Spaces and tabs separate tokens and are required between two words.
';' and '//' start a comment that runs to the end of the line.
"""

from __future__ import annotations
import enum
import re
from dataclasses import dataclass
from typing import List

from .errors import AsmSyntaxError


# ──────────────────────────────────────────────
# Token types
# ──────────────────────────────────────────────

class TokenType(enum.Enum):
    NUMBER = "NUMBER"
    IDENT = "IDENT"
    POINTER = "POINTER"
    NEWLINE = "NEWLINE"
    EOF = "EOF"


@dataclass
class Token:
    type: TokenType
    value: str | int
    line: int
    col: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.col})"


# Order matters: comments before anything else, POINTER before IDENT.
_TOKEN_RE = re.compile(r"""
    (?P<ws>[ \t\r]+)
  | (?P<comment>(?:;|//)[^\n]*)
  | (?P<newline>\n)
  | (?P<number>[0-9]+)
  | (?P<pointer>@[A-Za-z_][A-Za-z0-9_]*)
  | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
""", re.VERBOSE)


# Word tokens must be separated by whitespace: "ADD@x" is not "ADD @x".
_WORDS = frozenset({'number', 'pointer', 'ident'})


class Lexer:
    """Regex-driven scanner.

    Usage:
        tokens = Lexer(source).tokenize()
    """

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.col = 1
        self._lines = source.split('\n')

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        src = self.source
        prev_kind = None
        while self.pos < len(src):
            m = _TOKEN_RE.match(src, self.pos)
            if m is None:
                raise AsmSyntaxError(
                    f"Unexpected character {src[self.pos]!r} at column {self.col}",
                    self.line, self._line_text(self.line))
            kind = m.lastgroup
            text = m.group()
            if kind in _WORDS and prev_kind in _WORDS:
                raise AsmSyntaxError(
                    f"Missing space before {text!r} at column {self.col}",
                    self.line, self._line_text(self.line))
            prev_kind = kind
            if kind == 'newline':
                tokens.append(Token(TokenType.NEWLINE, '\n', self.line, self.col))
                self.line += 1
                self.col = 1
                self.pos = m.end()
                continue
            if kind == 'number':
                tokens.append(Token(TokenType.NUMBER, int(text), self.line, self.col))
            elif kind == 'pointer':
                tokens.append(Token(TokenType.POINTER, text[1:], self.line, self.col))
            elif kind == 'ident':
                tokens.append(Token(TokenType.IDENT, text, self.line, self.col))
            # ws / comment produce nothing
            self.col += len(text)
            self.pos = m.end()
        tokens.append(Token(TokenType.EOF, '', self.line, self.col))
        return tokens

    def _line_text(self, line_num: int) -> str:
        if 1 <= line_num <= len(self._lines):
            return self._lines[line_num - 1]
        return ""
