"""
Line parser for Little Man Plus assembly.

Grammar (one instruction per line, blank lines ignored):

    line     := [label] MNEMONIC [operand] NEWLINE
    label    := IDENT that is not made only of uppercase letters
    operand  := NUMBER | IDENT | POINTER

The uppercase rule keeps a label from swallowing the mnemonic when a line
has no label: ``ADD one`` is an instruction, ``loop ADD one`` is a
labelled instruction. DAT takes an optional NUMBER only.
"""

from __future__ import annotations
from typing import Dict, List, Optional

from .ast_nodes import LabelRef, Node, NumericOperand, Operand, PointerRef
from .codec import INT64_MAX, MNEMONICS, Opcode
from .errors import AsmSyntaxError
from .lexer import Token, TokenType


def is_label_name(text: str) -> bool:
    """Identifiers made only of uppercase ASCII letters are reserved for mnemonics."""
    return bool(text) and not all('A' <= c <= 'Z' for c in text)


class Parser:
    """Builds one Node per instruction line from the token stream."""

    def __init__(self, tokens: List[Token], source: str = ""):
        self.tokens = tokens
        self.source = source
        self.pos = 0
        self._lines = source.split('\n')

    # ── Helpers ─────────────────────────────

    def _cur(self) -> Token:
        return self.tokens[self.pos]

    def _at(self, *types: TokenType) -> bool:
        return self._cur().type in types

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _error(self, message: str, tok: Optional[Token] = None) -> AsmSyntaxError:
        tok = tok or self._cur()
        return AsmSyntaxError(message, tok.line, self._line_text(tok.line))

    def _line_text(self, line_num: int) -> str:
        if 1 <= line_num <= len(self._lines):
            return self._lines[line_num - 1]
        return ""

    # ── Grammar ─────────────────────────────

    def parse(self) -> List[Node]:
        nodes: List[Node] = []
        seen: Dict[str, int] = {}
        while not self._at(TokenType.EOF):
            if self._at(TokenType.NEWLINE):
                self._advance()
                continue
            node = self._parse_line()
            if node.label is not None:
                if node.label in seen:
                    raise AsmSyntaxError(
                        f"Duplicate label '{node.label}' "
                        f"(first defined on line {seen[node.label]})",
                        node.line, node.text)
                seen[node.label] = node.line
            nodes.append(node)
        return nodes

    def _parse_line(self) -> Node:
        first = self._cur()
        label = None
        if first.type == TokenType.IDENT and is_label_name(first.value):
            label = self._advance().value

        tok = self._cur()
        if tok.type != TokenType.IDENT:
            raise self._error("Expected mnemonic")
        opcode = MNEMONICS.get(tok.value)
        if opcode is None:
            raise self._error(f"Unknown mnemonic: {tok.value}")
        self._advance()

        operand = self._parse_operand(opcode, tok)

        if not self._at(TokenType.NEWLINE, TokenType.EOF):
            raise self._error(f"Unexpected {self._cur().value!r} after {opcode.name}")

        return Node(opcode=opcode, operand=operand, label=label,
                    line=first.line, text=self._line_text(first.line).strip())

    def _parse_operand(self, opcode: Opcode, mnem_tok: Token) -> Optional[Operand]:
        at_end = self._at(TokenType.NEWLINE, TokenType.EOF)

        if opcode is Opcode.DAT:
            if at_end:
                return NumericOperand(0)
            if not self._at(TokenType.NUMBER):
                raise self._error("DAT takes a numeric literal")
            return NumericOperand(self._number())

        if not opcode.has_operand:
            return None

        if at_end:
            raise self._error(f"{opcode.name}: missing operand", mnem_tok)
        tok = self._cur()
        if tok.type == TokenType.NUMBER:
            return NumericOperand(self._number())
        if tok.type == TokenType.IDENT:
            self._advance()
            return LabelRef(tok.value)
        if tok.type == TokenType.POINTER:
            self._advance()
            return PointerRef(tok.value)
        raise self._error(f"{opcode.name}: invalid operand")

    def _number(self) -> int:
        tok = self._advance()
        if tok.value > INT64_MAX:
            raise self._error(f"Literal {tok.value} does not fit in 64 bits", tok)
        return tok.value
