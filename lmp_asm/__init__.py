"""
Little Man Plus assembler
=========================
Assembler for an extended Little Man Computer: a single-accumulator machine
with 100 numbered mailboxes, bitwise extensions and pointer operands.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌───────────┐    ┌───────────┐
    │  Source  │───>│  Lexer   │───>│  Parser  │───>│ Resolver  │───>│   Codec   │
    │ (.lmp)   │    │ (tokens) │    │ (nodes)  │    │ (labels)  │    │ (cells)   │
    └──────────┘    └──────────┘    └──────────┘    └───────────┘    └───────────┘

    - lexer.py:     Regex tokenizer, one NEWLINE token per line
    - parser.py:    Line grammar: [label] MNEMONIC [operand]
    - ast_nodes.py: Symbolic operands (number, label, @pointer)
    - resolver.py:  Two-pass label resolver, address = line index
    - codec.py:     Band encoding of instructions into integers
    - assembler.py: Assembler class, listings, convenience functions
"""

__version__ = "0.2.0"

from .codec import (
    MEMORY_SIZE, BAND_WIDTH, Opcode, Instruction,
    EncodeError, DecodeError, encode, decode, try_decode, disassemble,
)
from .errors import (
    AssemblerError, AsmSyntaxError, UnknownLabelError, OperandRangeError, ProgramSizeError,
)
from .lexer import Lexer, Token, TokenType
from .parser import Parser
from .assembler import Assembler, assemble, assemble_image
