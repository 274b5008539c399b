"""
Pydantic models for tokenization and parsing.
Separated from parser logic for better organization.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .ast_schema import (
    FUNCTION_PRECEDENCE,
    OPERATOR_PRECEDENCE,
    SYMMETRIC_OPERATORS,
    ExpressionNode,
)


class TokenType(Enum):
    """Token types for lexical analysis."""

    # Operands
    NUMBER = "NUMBER"  # 2, 3.5
    FUNCTION = "FUNCTION"  # sin, cos, ...
    CONSTANT = "CONSTANT"  # pi, theta
    VARIABLE = "VARIABLE"  # single letter

    # Operators
    PLUS = "PLUS"  # +
    MINUS = "MINUS"  # -
    MULTIPLY = "MULTIPLY"  # *
    DIVIDE = "DIVIDE"  # /
    POWER = "POWER"  # ^
    EQUALS = "EQUALS"  # =

    # Punctuation
    LEFT_PAREN = "LEFT_PAREN"  # (
    RIGHT_PAREN = "RIGHT_PAREN"  # )

    # Special
    UNKNOWN = "UNKNOWN"


OPERATOR_TOKENS = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.MULTIPLY: "*",
    TokenType.DIVIDE: "/",
    TokenType.POWER: "^",
    TokenType.EQUALS: "=",
}

# Tokens that can begin an operand
OPERAND_START_TOKENS = frozenset(
    {
        TokenType.NUMBER,
        TokenType.FUNCTION,
        TokenType.CONSTANT,
        TokenType.VARIABLE,
        TokenType.LEFT_PAREN,
    }
)

# Tokens that can end an operand
OPERAND_END_TOKENS = frozenset(
    {
        TokenType.NUMBER,
        TokenType.CONSTANT,
        TokenType.VARIABLE,
        TokenType.RIGHT_PAREN,
    }
)


class Token(BaseModel):
    """Token with type, value, and position information."""

    type: TokenType
    value: str
    position: int


class StackEntry(BaseModel):
    """Entry on the parser's operator stack."""

    kind: str  # "operator", "function", "paren"
    symbol: str
    precedence: int = -1
    position: int = 0


class SupportedOperator(BaseModel):
    """Registry entry for a binary operator."""

    symbol: str
    name: str
    precedence: int
    associativity: str = "left"  # "left", "right"
    symmetric: bool = False

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "symbol": "^",
                    "name": "power",
                    "precedence": 5,
                    "associativity": "right",
                    "symmetric": False,
                }
            ]
        }
    )

    @property
    def incoming_precedence(self) -> int:
        """Precedence used when this operator is about to be pushed."""
        if self.associativity == "right":
            return self.precedence + 1
        return self.precedence


class SupportedFunction(BaseModel):
    """Registry entry for a callable function."""

    name: str
    glsl_equivalent: str
    description: str = ""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "name": "ln",
                    "glsl_equivalent": "log",
                    "description": "Natural logarithm",
                }
            ]
        }
    )


class FunctionRegistry(BaseModel):
    """Central registry of all supported functions."""

    functions: Dict[str, SupportedFunction] = Field(default_factory=dict)

    def add_function(self, func: SupportedFunction):
        """Add a function to the registry."""
        self.functions[func.name] = func

    def get_function(self, name: str) -> Optional[SupportedFunction]:
        """Get function info by name."""
        return self.functions.get(name.lower())

    def is_supported(self, name: str) -> bool:
        """Check if function is supported."""
        return name.lower() in self.functions

    def names(self) -> List[str]:
        """Function names, longest first."""
        return sorted(self.functions, key=lambda name: (-len(name), name))


class OperatorRegistry(BaseModel):
    """Central registry of all supported binary operators."""

    operators: Dict[str, SupportedOperator] = Field(default_factory=dict)
    function_precedence: int = FUNCTION_PRECEDENCE

    def add_operator(self, op: SupportedOperator):
        """Add an operator to the registry."""
        self.operators[op.symbol] = op

    def get_operator(self, symbol: str) -> Optional[SupportedOperator]:
        """Get operator info by symbol."""
        return self.operators.get(symbol)

    def is_supported(self, symbol: str) -> bool:
        """Check if operator is supported."""
        return symbol in self.operators


class ParserError(BaseModel):
    """Structured error information from the parser."""

    message: str
    position: Optional[int] = None


class ExpressionParseResult(BaseModel):
    """Result of parsing an expression."""

    success: bool
    original_expression: str

    # Success case
    root: Optional[ExpressionNode] = None

    # Error case
    error_message: Optional[str] = None
    errors: List[ParserError] = Field(default_factory=list)

    # Metadata
    tokens_count: int = 0
    ast_nodes_count: int = 0


# Default registries


def create_default_function_registry() -> FunctionRegistry:
    """Create registry with the functions the shading language provides."""
    registry = FunctionRegistry()

    functions = [
        SupportedFunction(name="sin", glsl_equivalent="sin", description="Sine"),
        SupportedFunction(name="cos", glsl_equivalent="cos", description="Cosine"),
        SupportedFunction(name="tan", glsl_equivalent="tan", description="Tangent"),
        SupportedFunction(
            name="abs", glsl_equivalent="abs", description="Absolute value"
        ),
        SupportedFunction(
            name="floor", glsl_equivalent="floor", description="Round down"
        ),
        SupportedFunction(name="ceil", glsl_equivalent="ceil", description="Round up"),
        SupportedFunction(
            name="sqrt", glsl_equivalent="sqrt", description="Square root"
        ),
        SupportedFunction(
            name="exp", glsl_equivalent="exp", description="Natural exponential"
        ),
        SupportedFunction(
            name="ln", glsl_equivalent="log", description="Natural logarithm"
        ),
    ]

    for func in functions:
        registry.add_function(func)

    return registry


def create_default_operator_registry() -> OperatorRegistry:
    """Create registry with the arithmetic and equation operators."""
    registry = OperatorRegistry()

    names = {
        "=": "equals",
        "+": "addition",
        "-": "subtraction",
        "*": "multiplication",
        "/": "division",
        "^": "power",
    }

    for symbol, precedence in OPERATOR_PRECEDENCE.items():
        registry.add_operator(
            SupportedOperator(
                symbol=symbol,
                name=names[symbol],
                precedence=precedence,
                associativity="right" if symbol == "^" else "left",
                symmetric=symbol in SYMMETRIC_OPERATORS,
            )
        )

    return registry


# Export all models
__all__ = [
    "TokenType",
    "Token",
    "StackEntry",
    "OPERATOR_TOKENS",
    "OPERAND_START_TOKENS",
    "OPERAND_END_TOKENS",
    "SupportedOperator",
    "SupportedFunction",
    "FunctionRegistry",
    "OperatorRegistry",
    "ParserError",
    "ExpressionParseResult",
    "create_default_function_registry",
    "create_default_operator_registry",
]
