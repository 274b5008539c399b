"""
Expression tokenizer - split raw input text into lexical tokens.
"""

import re
import logging
from typing import List, Optional

from ..models.parser_models import (
    FunctionRegistry,
    Token,
    TokenType,
    create_default_function_registry,
)

logger = logging.getLogger(__name__)


# Named constants become single-character variables
CONSTANTS = {
    "theta": "θ",
    "pi": "π",
}


class NoTokensFoundError(ValueError):
    """Raised when the input text yields no tokens at all."""

    pass


class ExpressionLexer:
    """Tokenizer for formulas such as ``y = 2x^2 + sin(theta)``."""

    # Patterns after the name patterns (order matters!)
    SYMBOL_PATTERNS = [
        # Numbers
        (r"\d+\.\d+|\d+\.?|\.\d+", TokenType.NUMBER),
        # Single character operators
        (r"\+", TokenType.PLUS),
        (r"-", TokenType.MINUS),
        (r"\*", TokenType.MULTIPLY),
        (r"/", TokenType.DIVIDE),
        (r"\^", TokenType.POWER),
        (r"=", TokenType.EQUALS),
        # Punctuation
        (r"\(", TokenType.LEFT_PAREN),
        (r"\)", TokenType.RIGHT_PAREN),
    ]

    def __init__(self, function_registry: Optional[FunctionRegistry] = None):
        self.function_registry = function_registry or create_default_function_registry()

        # Multi-letter names are tried before single letters
        function_names = "|".join(
            re.escape(name) for name in self.function_registry.names()
        )
        constant_names = "|".join(
            re.escape(name) for name in sorted(CONSTANTS, key=len, reverse=True)
        )
        patterns = []
        if function_names:
            patterns.append((rf"(?i:{function_names})", TokenType.FUNCTION))
        patterns.extend(
            [
                (rf"(?i:{constant_names})", TokenType.CONSTANT),
                (r"[θπ]", TokenType.CONSTANT),
                (r"[A-Za-z]", TokenType.VARIABLE),
            ]
        )
        patterns.extend(self.SYMBOL_PATTERNS)

        # Compile patterns for performance
        self.compiled_patterns = [
            (re.compile(pattern), token_type) for pattern, token_type in patterns
        ]

    def tokenize(self, text: str) -> List[Token]:
        """
        Tokenize an expression string.

        Raises:
            NoTokensFoundError: If the text contains no tokens
        """
        tokens = []
        position = 0

        while position < len(text):
            # Skip whitespace
            if text[position].isspace():
                position += 1
                continue

            matched = False
            for pattern, token_type in self.compiled_patterns:
                match = pattern.match(text, position)
                if match:
                    value = match.group(0)

                    if token_type == TokenType.FUNCTION:
                        value = value.lower()
                    elif token_type == TokenType.CONSTANT:
                        value = CONSTANTS.get(value.lower(), value)

                    tokens.append(Token(type=token_type, value=value, position=position))
                    position = match.end()
                    matched = True
                    break

            if not matched:
                # Unknown character
                tokens.append(
                    Token(type=TokenType.UNKNOWN, value=text[position], position=position)
                )
                position += 1

        if not tokens:
            raise NoTokensFoundError(f"No tokens found in input: {text!r}")

        logger.debug(f"Tokenized {text!r} into {len(tokens)} tokens")
        return tokens
