"""
Notation Renderer - Converts expression trees to display markup.

Exponents become a ``<sup>`` superscript and ratios a two-part fraction
container ``<span class="ratio">``, so a consumer can style both.
"""

import math
import logging
from decimal import Decimal
from typing import Optional, Union

from ..models.ast_schema import ExpressionNode, NodeType, needs_parentheses
from ..models.parser_models import FunctionRegistry, create_default_function_registry
from .tokenizer import CONSTANTS

logger = logging.getLogger(__name__)

SUPERSCRIPT_TAG = "sup"
RATIO_CLASS = "ratio"


def format_number(value: Union[int, float]) -> str:
    """
    Print a literal the way it would be typed, never in exponent form.

    Integral values drop the decimal point (2.0 -> 2) and other floats are
    written out positionally (1e-05 -> 0.00001).
    """
    if isinstance(value, int) or not math.isfinite(value):
        return str(value)
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")


class NotationRenderer:
    """
    Converts expression trees to a markup string for human display.

    Each node type has a specific rendering method; binary nodes recurse into
    their operands and wrap them in parentheses where precedence requires.
    """

    def __init__(self, function_registry: Optional[FunctionRegistry] = None):
        self.function_registry = function_registry or create_default_function_registry()
        # Names the lexer reads as one token; adjacent letters must not spell them
        self.reserved_names = [
            name.lower() for name in self.function_registry.names()
        ] + list(CONSTANTS)

    def render(self, node: ExpressionNode) -> str:
        """
        Render a tree as markup.

        Example:
            Input tree: y = x^2 - 2*x + 1
            Output: "y = x<sup>2</sup> - 2x + 1"
        """
        return self._render_node(node)

    def _render_node(self, node: ExpressionNode) -> str:
        if node.node_type == NodeType.EMPTY:
            return ""
        elif node.node_type == NodeType.NUMBER:
            return format_number(node.value)
        elif node.node_type == NodeType.VARIABLE:
            return node.value
        elif node.node_type == NodeType.FUNCTION:
            return f"{node.value}({self._render_node(node.argument)})"
        elif node.node_type == NodeType.RATIO:
            return self._render_ratio(node)
        elif node.node_type == NodeType.BINARY:
            return self._render_binary(node)

        logger.warning(f"Unsupported node type: {node.node_type}")
        return ""

    def _render_ratio(self, node: ExpressionNode) -> str:
        # The container separates numerator and denominator, no parentheses
        numerator = self._render_node(node.left)
        denominator = self._render_node(node.right)
        return (
            f'<span class="{RATIO_CLASS}">'
            f"<span>{numerator}</span><span>{denominator}</span>"
            "</span>"
        )

    def _render_binary(self, node: ExpressionNode) -> str:
        left = self._render_operand(node.left, node, is_right=False)

        if node.operator == "^":
            if node.left.is_number() and node.left.value < 0:
                left = f"({left})"
            # The superscript already groups the exponent
            exponent = self._render_node(node.right)
            return f"{left}<{SUPERSCRIPT_TAG}>{exponent}</{SUPERSCRIPT_TAG}>"

        right = self._render_operand(node.right, node, is_right=True)

        if node.operator == "*":
            if node.left.is_number(-1) and not node.right.is_number():
                return f"-{right}"
            return f"{left}{self._product_separator(node)}{right}"

        return f"{left} {node.operator} {right}"

    def _render_operand(
        self, child: ExpressionNode, parent: ExpressionNode, is_right: bool
    ) -> str:
        rendered = self._render_node(child)
        if needs_parentheses(child, parent, is_right):
            return f"({rendered})"
        return rendered

    def _product_separator(self, node: ExpressionNode) -> str:
        """
        Juxtapose factors where that reads unambiguously.

        Walks down the right operand's left chain to the factor that will be
        printed next to the left operand: a variable is written adjacent
        (``2x``), a function call after a space (``2 sin(x)``) and a literal
        keeps the explicit operator (``x * 2``). Two letters that begin a
        function or constant name are split by a space (``l n``, ``p i``).
        """
        if node.left.is_number() and node.right.is_number():
            return " * "

        neighbor = node.right
        while neighbor.is_binary:
            neighbor = neighbor.left

        if neighbor.node_type == NodeType.FUNCTION:
            return " "
        if neighbor.node_type == NodeType.VARIABLE:
            if self._spells_name(self._last_factor(node.left), neighbor):
                return " "
            return ""
        return " * "

    @staticmethod
    def _last_factor(node: ExpressionNode) -> ExpressionNode:
        """The factor printed at the right end of a product."""
        while node.is_operator("*"):
            node = node.right
        return node

    def _spells_name(self, left: ExpressionNode, right: ExpressionNode) -> bool:
        if left.node_type != NodeType.VARIABLE:
            return False
        pair = f"{left.value}{right.value}".lower()
        return any(name.startswith(pair) for name in self.reserved_names)
