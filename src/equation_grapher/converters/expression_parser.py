"""
Expression Parser - Convert expression text to an expression tree.

Uses a two-stack shunting-yard reduction (operand stack + operator stack)
with implicit multiplication, right-associative powers and function-call
binding.
"""

import math
import logging
from typing import List, Optional, Union

from ..models.ast_schema import (
    ExpressionNode,
    binary,
    count_nodes,
    empty,
    function,
    number,
    variable,
)
from ..models.parser_models import (
    OPERAND_END_TOKENS,
    OPERAND_START_TOKENS,
    OPERATOR_TOKENS,
    ExpressionParseResult,
    FunctionRegistry,
    OperatorRegistry,
    ParserError,
    StackEntry,
    Token,
    TokenType,
    create_default_function_registry,
    create_default_operator_registry,
)
from .tokenizer import ExpressionLexer, NoTokensFoundError

logger = logging.getLogger(__name__)


class ExpressionParseError(ValueError):
    """Base class for input that cannot be turned into a tree."""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.position = position


class MalformedExpressionError(ExpressionParseError):
    """Raised when operators and operands do not reduce to a single tree."""

    pass


class UnbalancedParenthesesError(ExpressionParseError):
    """Raised when a parenthesis has no matching partner."""

    pass


class ExpressionParser:
    """Shunting-yard parser for arithmetic expressions and equations."""

    def __init__(
        self,
        function_registry: Optional[FunctionRegistry] = None,
        operator_registry: Optional[OperatorRegistry] = None,
    ):
        # Use provided registries or create defaults
        self.function_registry = function_registry or create_default_function_registry()
        self.operator_registry = operator_registry or create_default_operator_registry()
        self.lexer = ExpressionLexer(self.function_registry)

    def parse_expression(self, text: str) -> ExpressionParseResult:
        """Parse expression text and report the outcome without raising."""
        try:
            tokens = self.lexer.tokenize(text)
        except NoTokensFoundError:
            logger.debug(f"No tokens in {text!r}, returning empty node")
            root = empty()
            return ExpressionParseResult(
                success=True, original_expression=text, root=root, ast_nodes_count=1
            )

        try:
            root = self.parse_tokens(tokens)
        except ExpressionParseError as e:
            logger.warning(f"Failed to parse expression {text!r}: {e.message}")
            return ExpressionParseResult(
                success=False,
                original_expression=text,
                error_message=e.message,
                errors=[ParserError(message=e.message, position=e.position)],
                tokens_count=len(tokens),
            )

        return ExpressionParseResult(
            success=True,
            original_expression=text,
            root=root,
            tokens_count=len(tokens),
            ast_nodes_count=count_nodes(root),
        )

    def parse(self, text: str) -> ExpressionNode:
        """
        Parse expression text into a single root node.

        Input without tokens yields the empty node.

        Raises:
            MalformedExpressionError: If the tokens do not form one expression
            UnbalancedParenthesesError: If parentheses do not match
        """
        try:
            tokens = self.lexer.tokenize(text)
        except NoTokensFoundError:
            logger.debug(f"No tokens in {text!r}, returning empty node")
            return empty()

        return self.parse_tokens(tokens)

    def parse_tokens(self, tokens: List[Token]) -> ExpressionNode:
        """Reduce a token sequence to one root node."""
        operands: List[ExpressionNode] = []
        operators: List[StackEntry] = []
        previous: Optional[Token] = None
        negate_next = False

        for index, token in enumerate(tokens):
            if token.type == TokenType.UNKNOWN:
                raise MalformedExpressionError(
                    f"Unexpected character: {token.value}", token.position
                )

            # Two adjacent operands multiply
            if (
                token.type in OPERAND_START_TOKENS
                and previous is not None
                and previous.type in OPERAND_END_TOKENS
            ):
                self._push_operator("*", token.position, operands, operators)

            if token.type == TokenType.NUMBER:
                value = self._number_value(token.value, token.position)
                operands.append(number(-value if negate_next else value))
                negate_next = False

            elif token.type in (TokenType.VARIABLE, TokenType.CONSTANT):
                operands.append(variable(token.value))

            elif token.type == TokenType.FUNCTION:
                operators.append(
                    StackEntry(
                        kind="function",
                        symbol=token.value,
                        precedence=self.operator_registry.function_precedence,
                        position=token.position,
                    )
                )

            elif token.type == TokenType.LEFT_PAREN:
                operators.append(
                    StackEntry(kind="paren", symbol="(", position=token.position)
                )

            elif token.type == TokenType.RIGHT_PAREN:
                self._close_paren(token, operands, operators)

            elif token.type == TokenType.MINUS and self._is_prefix(previous):
                if self._negates_literal(tokens, index):
                    negate_next = True
                else:
                    # -a is parsed as -1 * a, binding tighter than a product
                    operands.append(number(-1))
                    operators.append(
                        StackEntry(
                            kind="operator",
                            symbol="*",
                            precedence=self.operator_registry.function_precedence,
                            position=token.position,
                        )
                    )

            else:
                self._push_operator(
                    OPERATOR_TOKENS[token.type], token.position, operands, operators
                )

            previous = token

        while operators:
            entry = operators.pop()
            if entry.kind == "paren":
                raise UnbalancedParenthesesError(
                    "Unmatched '(' at end of input", entry.position
                )
            self._reduce(entry, operands)

        if len(operands) != 1:
            raise MalformedExpressionError(
                f"Expected a single expression, found {len(operands)}"
            )

        root = operands[0]
        logger.debug(f"Parsed {len(tokens)} tokens into {count_nodes(root)} nodes")
        return root

    def _push_operator(
        self,
        symbol: str,
        position: int,
        operands: List[ExpressionNode],
        operators: List[StackEntry],
    ):
        """Reduce everything binding at least as tight, then push the operator."""
        op = self.operator_registry.get_operator(symbol)
        incoming = op.incoming_precedence

        while (
            operators
            and operators[-1].kind != "paren"
            and operators[-1].precedence >= incoming
        ):
            self._reduce(operators.pop(), operands)

        operators.append(
            StackEntry(
                kind="operator", symbol=symbol, precedence=op.precedence, position=position
            )
        )

    def _close_paren(
        self,
        token: Token,
        operands: List[ExpressionNode],
        operators: List[StackEntry],
    ):
        while operators and operators[-1].kind != "paren":
            self._reduce(operators.pop(), operands)

        if not operators:
            raise UnbalancedParenthesesError("Unmatched ')'", token.position)

        operators.pop()

        # sin(...) binds its argument as soon as the parenthesis closes
        if operators and operators[-1].kind == "function":
            self._reduce(operators.pop(), operands)

    def _reduce(self, entry: StackEntry, operands: List[ExpressionNode]):
        """Pop the operands an operator needs and push the combined node."""
        if entry.kind == "function":
            if not operands:
                raise MalformedExpressionError(
                    f"Function {entry.symbol} is missing its argument", entry.position
                )
            operands.append(function(entry.symbol, operands.pop()))
            return

        if len(operands) < 2:
            raise MalformedExpressionError(
                f"Operator {entry.symbol} is missing an operand", entry.position
            )

        right = operands.pop()
        left = operands.pop()
        operands.append(binary(entry.symbol, left, right))

    @staticmethod
    def _is_prefix(previous: Optional[Token]) -> bool:
        """A minus with no operand before it negates what follows."""
        return previous is None or previous.type not in OPERAND_END_TOKENS

    @staticmethod
    def _negates_literal(tokens: List[Token], index: int) -> bool:
        """-2 is a literal unless a power follows, as in -2^2."""
        if index + 1 >= len(tokens) or tokens[index + 1].type != TokenType.NUMBER:
            return False
        return index + 2 >= len(tokens) or tokens[index + 2].type != TokenType.POWER

    @staticmethod
    def _number_value(text: str, position: int) -> Union[int, float]:
        """Convert a number token, rejecting literals no float can hold."""
        try:
            value = float(text) if "." in text else int(text)
            # Overflows for integers beyond the float range
            in_range = math.isfinite(float(value))
        except (OverflowError, ValueError):
            in_range = False
        if not in_range:
            raise MalformedExpressionError(
                f"Number literal is too large ({len(text)} digits)", position
            )
        return value
