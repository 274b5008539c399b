"""
Code Renderer - Converts expression trees to shading-language expressions.

The output is a single-line arithmetic expression over ``x`` and ``y`` that
can be returned from a fragment shader's sample function. Every literal
carries a decimal point so no integer arithmetic sneaks in.
"""

import math
import logging
from typing import Optional, Union

from ..models.ast_schema import (
    ExpressionNode,
    NodeType,
    binary,
    needs_parentheses,
    number,
)
from ..models.parser_models import FunctionRegistry, create_default_function_registry

logger = logging.getLogger(__name__)

# Single-character constants that are not identifiers in the target language
CONSTANT_CODE = {
    "π": repr(math.pi),
    "θ": "atan(y, x)",
}

CODE_SEPARATORS = {
    "+": " + ",
    "-": " - ",
    "*": "*",
    "/": "/",
}


def format_float(value: Union[int, float]) -> str:
    """Render a literal that always reads as floating point: 2 -> 2.0."""
    if isinstance(value, int):
        # Integers past the float range are written out in full
        text = repr(float(value)) if abs(value) < 2**1023 else f"{value}.0"
    else:
        text = repr(value)
    if not any(marker in text for marker in (".", "e")):
        text += ".0"
    if value < 0:
        return f"({text})"
    return text


class CodeRenderer:
    """
    Converts expression trees to shading-language arithmetic.

    The target's ``pow`` is undefined for negative bases, so integer powers up
    to ``max_unrolled_exponent`` are unrolled into products and larger powers
    go through ``abs`` with the sign restored for odd exponents.
    """

    def __init__(
        self,
        function_registry: Optional[FunctionRegistry] = None,
        max_unrolled_exponent: int = 6,
    ):
        self.function_registry = function_registry or create_default_function_registry()
        self.max_unrolled_exponent = max_unrolled_exponent

    def render(self, node: ExpressionNode) -> str:
        """
        Render a tree as a shading-language expression.

        Examples:
            x^2 - 2x + 1 → x*x - 2.0*x + 1.0
            x^7          → pow(abs(x), 6.0) * x
            y = sin(x)   → y - sin(x)
        """
        result = self._render_node(node)
        logger.debug(f"Rendered code: {result}")
        return result

    def _render_node(self, node: ExpressionNode) -> str:
        if node.node_type == NodeType.EMPTY:
            return ""
        elif node.node_type == NodeType.NUMBER:
            return format_float(node.value)
        elif node.node_type == NodeType.VARIABLE:
            return CONSTANT_CODE.get(node.value, node.value)
        elif node.node_type == NodeType.FUNCTION:
            return self._render_function(node)
        elif node.is_operator("^"):
            return self._render_power(node)
        elif node.is_operator("="):
            # The sign of left - right is the graphing criterion
            return self._render_node(binary("-", node.left, node.right))
        elif node.is_binary:
            left = self._render_operand(node.left, node, is_right=False)
            right = self._render_operand(node.right, node, is_right=True)
            return f"{left}{CODE_SEPARATORS[node.operator]}{right}"

        logger.warning(f"Unsupported node type: {node.node_type}")
        return ""

    def _render_function(self, node: ExpressionNode) -> str:
        func_info = self.function_registry.get_function(node.value)
        name = func_info.glsl_equivalent if func_info else node.value
        return f"{name}({self._render_node(node.argument)})"

    def _render_operand(
        self, child: ExpressionNode, parent: ExpressionNode, is_right: bool
    ) -> str:
        rendered = self._render_node(child)
        if needs_parentheses(child, parent, is_right):
            return f"({rendered})"
        if is_right and parent.node_type == NodeType.RATIO and self._is_product(child):
            # An unrolled power in a denominator must stay grouped
            return f"({rendered})"
        return rendered

    def _render_factor(self, node: ExpressionNode) -> str:
        """Render a power's base so it can be repeated as a factor."""
        rendered = self._render_node(node)
        if node.is_binary and not node.is_operator("^"):
            return f"({rendered})"
        if node.is_operator("^") and self._is_product(node):
            return f"({rendered})"
        return rendered

    def _integer_exponent(self, node: ExpressionNode) -> Optional[int]:
        exponent = node.right
        if exponent.is_number() and float(exponent.value).is_integer():
            return int(exponent.value)
        return None

    def _is_product(self, node: ExpressionNode) -> bool:
        """Whether a power renders as a product or quotient of factors."""
        if not node.is_operator("^"):
            return False
        exponent = self._integer_exponent(node)
        if exponent is None:
            return False
        if exponent < 0:
            return True
        if exponent <= self.max_unrolled_exponent:
            return exponent >= 2
        return exponent % 2 == 1

    def _render_power(self, node: ExpressionNode) -> str:
        base = node.left
        exponent = self._integer_exponent(node)

        if exponent is None:
            # Sign of the base is lost for non-integer exponents
            return f"pow(abs({self._render_node(base)}), {self._render_node(node.right)})"

        if exponent < 0:
            positive = binary("^", base, number(-exponent))
            return f"1.0/({self._render_power(positive)})"

        if exponent <= self.max_unrolled_exponent:
            if exponent == 0:
                return "1.0"
            return "*".join([self._render_factor(base)] * exponent)

        base_code = self._render_node(base)
        if exponent % 2 == 0:
            return f"pow(abs({base_code}), {format_float(exponent)})"
        return (
            f"pow(abs({base_code}), {format_float(exponent - 1)}) * "
            f"{self._render_factor(base)}"
        )
