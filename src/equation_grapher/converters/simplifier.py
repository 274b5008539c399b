"""
Expression simplifier - one rewrite step toward a canonical form.

Each rule is a pure function taking a node and returning its replacement, or
None when the rule does not apply. ``simplify_step`` tries the rules at the
current node in priority order and only recurses into the children when none
of them fires, so exactly one rewrite happens per call.
"""

import math
import logging
from fractions import Fraction
from typing import Callable, List, Optional, Tuple, Union

from ..models.ast_schema import (
    SYMMETRIC_OPERATORS,
    ExpressionNode,
    NodeType,
    binary,
    function,
    number,
    ratio,
)

logger = logging.getLogger(__name__)

Rule = Callable[[ExpressionNode], Optional[ExpressionNode]]

# Integer powers above this are left unevaluated
MAX_FOLDED_EXPONENT = 64


def equivalent(a: ExpressionNode, b: ExpressionNode) -> bool:
    """
    Structural equality where the operands of ``+``, ``*`` and ``=`` may
    appear in either order.
    """
    if a.node_type != b.node_type:
        return False

    if a.node_type in (NodeType.NUMBER, NodeType.VARIABLE, NodeType.EMPTY):
        return a.value == b.value

    if a.node_type == NodeType.FUNCTION:
        return a.value == b.value and equivalent(a.argument, b.argument)

    if a.operator != b.operator:
        return False

    if equivalent(a.left, b.left) and equivalent(a.right, b.right):
        return True

    return (
        a.operator in SYMMETRIC_OPERATORS
        and equivalent(a.left, b.right)
        and equivalent(a.right, b.left)
    )


# Exact arithmetic helpers


def _exact(value: Union[int, float]) -> Fraction:
    if isinstance(value, int):
        return Fraction(value)
    # repr keeps the decimal the user typed: 0.1 -> 1/10
    return Fraction(repr(value))


def _fits_float(value: Fraction) -> bool:
    try:
        float(value)
    except OverflowError:
        return False
    return True


def _literal(value: Fraction, exact_inputs: bool) -> Optional[ExpressionNode]:
    """
    Turn an exact result back into a node, or None when it is out of the
    range of a floating point literal.
    """
    if not _fits_float(value):
        return None
    if value.denominator == 1:
        return number(value.numerator)
    if exact_inputs:
        return ratio(number(value.numerator), number(value.denominator))
    return number(float(value))


def _is_integral(value: Union[int, float]) -> bool:
    return isinstance(value, int) or float(value).is_integer()


# Rules


def fold_constants(node: ExpressionNode) -> Optional[ExpressionNode]:
    """Evaluate an operator whose operands are both numeric literals."""
    if not node.is_binary or node.operator == "=":
        return None
    if not (node.left.is_number() and node.right.is_number()):
        return None

    left = _exact(node.left.value)
    right = _exact(node.right.value)

    if node.node_type == NodeType.RATIO:
        if right == 0:
            return None
        quotient = left / right
        if quotient.denominator == 1:
            return number(quotient.numerator)
        if quotient.numerator == left and quotient.denominator == right:
            # Already in lowest terms
            return None
        return ratio(number(quotient.numerator), number(quotient.denominator))

    if node.operator == "+":
        return _literal(left + right, exact_inputs=False)
    if node.operator == "-":
        return _literal(left - right, exact_inputs=False)
    if node.operator == "*":
        return _literal(left * right, exact_inputs=False)

    # Power
    if right.denominator == 1:
        exponent = right.numerator
        if abs(exponent) > MAX_FOLDED_EXPONENT or (left == 0 and exponent < 0):
            return None
        exact_inputs = _is_integral(node.left.value)
        return _literal(left**exponent, exact_inputs=exact_inputs)

    if left < 0:
        # Fractional power of a negative base is not real
        return None
    try:
        result = math.pow(float(left), float(right))
    except (OverflowError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    if result.is_integer():
        return number(int(result))
    return number(result)


def eliminate_identities(node: ExpressionNode) -> Optional[ExpressionNode]:
    """Drop neutral operands: 1*a, a*1, a/1, a+0, 0+a, a-0, a^1."""
    if node.node_type == NodeType.RATIO:
        return node.left if node.right.is_number(1) else None

    if node.node_type != NodeType.BINARY:
        return None

    if node.operator == "*":
        if node.left.is_number(1):
            return node.right
        if node.right.is_number(1):
            return node.left
    elif node.operator == "+":
        if node.right.is_number(0):
            return node.left
        if node.left.is_number(0):
            return node.right
    elif node.operator == "-":
        if node.right.is_number(0):
            return node.left
    elif node.operator == "^":
        if node.right.is_number(1):
            return node.left

    return None


def distribute_ratios(node: ExpressionNode) -> Optional[ExpressionNode]:
    """
    Combine two ratios joined by ``*``, ``+`` or ``-`` into one ratio.

    A denominator that appears twice in the result is copied so no node
    is shared between branches.
    """
    if node.node_type != NodeType.BINARY or node.operator not in ("*", "+", "-"):
        return None
    if not (
        node.left.node_type == NodeType.RATIO
        and node.right.node_type == NodeType.RATIO
    ):
        return None

    a, b = node.left.left, node.left.right
    c, d = node.right.left, node.right.right

    if node.operator == "*":
        return ratio(binary("*", a, c), binary("*", b, d))

    if equivalent(b, d):
        return ratio(binary(node.operator, a, c), b)

    return ratio(
        binary(node.operator, binary("*", a, d), binary("*", c, b)),
        binary("*", b.model_copy(deep=True), d.model_copy(deep=True)),
    )


def _split_power(node: ExpressionNode) -> Tuple[ExpressionNode, ExpressionNode]:
    if node.is_operator("^"):
        return node.left, node.right
    return node, number(1)


def _merge_powers(
    first: ExpressionNode, second: ExpressionNode
) -> Optional[ExpressionNode]:
    """a^m * a^n -> a^(m+n), where a bare factor counts as a^1."""
    if first.is_number() and second.is_number():
        return None

    base, first_exponent = _split_power(first)
    other_base, second_exponent = _split_power(second)
    if not equivalent(base, other_base):
        return None

    if first_exponent.is_number() and second_exponent.is_number():
        exponent = _literal(
            _exact(first_exponent.value) + _exact(second_exponent.value),
            exact_inputs=False,
        )
        if exponent is None:
            return None
    else:
        exponent = binary("+", first_exponent, second_exponent)

    return binary("^", base, exponent)


def consolidate_powers(node: ExpressionNode) -> Optional[ExpressionNode]:
    """Merge repeated factors of a product into a single power."""
    if not node.is_operator("*"):
        return None

    merged = _merge_powers(node.left, node.right)
    if merged is not None:
        return merged

    # One level into a left-nested product: (k*a)*a, (a*k)*a
    if node.left.is_operator("*"):
        inner = node.left
        merged = _merge_powers(inner.right, node.right)
        if merged is not None:
            return binary("*", inner.left, merged)
        merged = _merge_powers(inner.left, node.right)
        if merged is not None:
            return binary("*", merged, inner.right)

    return None


def order_coefficients(node: ExpressionNode) -> Optional[ExpressionNode]:
    """Move a literal factor to the left: a*2 -> 2*a."""
    if not node.is_operator("*"):
        return None
    if node.right.is_number() and not node.left.is_number():
        return binary("*", node.right, node.left)
    return None


class ExpressionSimplifier:
    """
    Applies the rewrite rule catalog to expression trees.

    The rule list is ordered by priority; callers drive repeated steps until
    the rendering stops changing.
    """

    def __init__(self, rules: Optional[List[Tuple[str, Rule]]] = None):
        self.rules = rules if rules is not None else self._build_rule_registry()
        logger.debug(f"Simplifier initialized with {len(self.rules)} rules")

    def _build_rule_registry(self) -> List[Tuple[str, Rule]]:
        return [
            ("constant_folding", fold_constants),
            ("identity_elimination", eliminate_identities),
            ("ratio_distribution", distribute_ratios),
            ("power_consolidation", consolidate_powers),
            ("coefficient_ordering", order_coefficients),
        ]

    def simplify_step(self, node: ExpressionNode) -> Tuple[ExpressionNode, bool]:
        """
        Apply at most one rewrite to the tree.

        Returns:
            The (possibly new) tree and whether a rule fired.
        """
        for name, rule in self.rules:
            replacement = rule(node)
            if replacement is not None:
                logger.debug(f"Rule {name} rewrote {node.node_type} node")
                return replacement, True

        # No rule fired here, try the children
        if node.node_type == NodeType.FUNCTION:
            argument, changed = self.simplify_step(node.argument)
            if changed:
                return function(node.value, argument), True

        elif node.is_binary:
            left, changed = self.simplify_step(node.left)
            if changed:
                return binary(node.operator, left, node.right), True

            right, changed = self.simplify_step(node.right)
            if changed:
                return binary(node.operator, node.left, right), True

        return node, False

    def simplify(self, node: ExpressionNode, max_steps: int = 20) -> ExpressionNode:
        """Apply steps until no rule fires or ``max_steps`` is reached."""
        for _ in range(max_steps):
            node, changed = self.simplify_step(node)
            if not changed:
                break
        return node
