"""
Tokenizer for formulafun expressions.

Turns formula text such as ``sin(x^2 * b) ~ x & y`` into a stream of tokens
for the parser. Names follow R conventions and may contain dots, so
``np.log`` and ``log.value`` are single names.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from ..core.exceptions import ExpressionSyntaxError


NUMBER = 'NUMBER'
STRING = 'STRING'
NAME = 'NAME'
OP = 'OP'
LPAREN = 'LPAREN'
RPAREN = 'RPAREN'
LBRACKET = 'LBRACKET'
RBRACKET = 'RBRACKET'
COMMA = 'COMMA'
EQUALS = 'EQUALS'
TILDE = 'TILDE'
EOF = 'EOF'


TOKEN_PATTERNS = [
    (NUMBER, r"(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?"),
    (STRING, r"'[^']*'|\"[^\"]*\""),
    (NAME, r"[A-Za-z_][A-Za-z0-9_.]*"),
    (OP, r"\*\*|%/%|%%|==|!=|<=|>=|&&|\|\||[-+*/^:<>&|!]"),
    (LPAREN, r"\("),
    (RPAREN, r"\)"),
    (LBRACKET, r"\["),
    (RBRACKET, r"\]"),
    (COMMA, r","),
    (EQUALS, r"="),
    (TILDE, r"~"),
    ('SKIP', r"\s+"),
    ('MISMATCH', r"."),
]

_MASTER_PATTERN = re.compile(
    "|".join(f"(?P<{kind}>{pattern})" for kind, pattern in TOKEN_PATTERNS)
)


@dataclass(frozen=True)
class Token:
    """A single lexical token and its column in the source text."""

    type: str
    value: Optional[str]
    position: int

    def __repr__(self) -> str:
        return f"Token[{self.type}, {self.value!r}]"


def tokenize(text: str) -> List[Token]:
    """
    Split expression text into tokens.

    Args:
        text: Expression or formula text

    Returns:
        List of tokens terminated by an EOF token

    Raises:
        ExpressionSyntaxError: On characters that belong to no token
    """
    tokens = []
    for match in _MASTER_PATTERN.finditer(text):
        kind = match.lastgroup
        value = match.group()
        if kind == 'SKIP':
            continue
        if kind == 'MISMATCH':
            raise ExpressionSyntaxError(text, position=match.start(), found=value)
        tokens.append(Token(kind, value, match.start()))

    tokens.append(Token(EOF, None, len(text)))
    return tokens
