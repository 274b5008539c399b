"""
Expression tree schema.

A single frozen node model tagged by ``node_type`` represents every variant of
a parsed formula: numeric literals, variables, function calls, binary
operators and ratios. Rewrites never mutate a node; they allocate new ones.
"""

from enum import Enum
from typing import List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, model_validator


class NodeType(str, Enum):
    """Expression node variants."""

    # Leaf nodes
    NUMBER = "number"  # 2, 3.5
    VARIABLE = "variable"  # x, y, θ, π

    # Unary
    FUNCTION = "function"  # sin(x), abs(x)

    # Binary
    BINARY = "binary"  # +, -, *, ^, =
    RATIO = "ratio"  # numerator / denominator

    # Result of parsing input without tokens
    EMPTY = "empty"


# Binding strength, higher binds tighter
OPERATOR_PRECEDENCE = {
    "=": 0,
    "+": 2,
    "-": 2,
    "*": 3,
    "/": 3,
    "^": 5,
}

# Operand order does not matter for these
SYMMETRIC_OPERATORS = frozenset({"+", "*", "="})

BINARY_OPERATORS = frozenset({"+", "-", "*", "^", "="})

# A pending function call binds between product and power
FUNCTION_PRECEDENCE = 4


class ExpressionNode(BaseModel):
    """
    Node of an expression tree.

    ``value`` holds the literal number, the variable name or the function
    name. ``operator``, ``left`` and ``right`` belong to binary and ratio
    nodes, ``argument`` to function calls.
    """

    node_type: NodeType
    value: Optional[Union[int, float, str]] = None
    operator: Optional[str] = None
    left: Optional["ExpressionNode"] = None
    right: Optional["ExpressionNode"] = None
    argument: Optional["ExpressionNode"] = None

    model_config = ConfigDict(
        frozen=True,
        use_enum_values=True,
        extra="forbid",
        json_schema_extra={
            "examples": [
                {"node_type": "number", "value": 2},
                {"node_type": "variable", "value": "x"},
                {
                    "node_type": "binary",
                    "operator": "^",
                    "left": {"node_type": "variable", "value": "x"},
                    "right": {"node_type": "number", "value": 2},
                },
                {
                    "node_type": "function",
                    "value": "sin",
                    "argument": {"node_type": "variable", "value": "x"},
                },
            ]
        },
    )

    @model_validator(mode="after")
    def _check_variant(self) -> "ExpressionNode":
        errors = ASTValidator.validate_node(self)
        if errors:
            raise ValueError("; ".join(errors))
        return self

    @property
    def is_binary(self) -> bool:
        """True for binary operators and ratios."""
        return self.node_type in (NodeType.BINARY, NodeType.RATIO)

    @property
    def is_leaf(self) -> bool:
        return self.node_type in (NodeType.NUMBER, NodeType.VARIABLE, NodeType.EMPTY)

    def precedence(self) -> Optional[int]:
        """Precedence of the operator at this node, None for non-operators."""
        if self.is_binary:
            return OPERATOR_PRECEDENCE[self.operator]
        return None

    def is_number(self, value: Optional[float] = None) -> bool:
        """Check for a numeric literal, optionally with a given value."""
        if self.node_type != NodeType.NUMBER:
            return False
        return value is None or self.value == value

    def is_operator(self, symbol: str) -> bool:
        return self.is_binary and self.operator == symbol


class ASTValidator:
    """Validator for expression tree integrity."""

    @staticmethod
    def validate_node(node: ExpressionNode) -> List[str]:
        """Validate a single node's variant payload and return any errors."""
        errors = []

        if node.node_type == NodeType.NUMBER:
            if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
                errors.append("Numeric literal missing numeric value")
            if node.left or node.right or node.argument:
                errors.append("Numeric literal cannot have children")

        elif node.node_type == NodeType.VARIABLE:
            if not isinstance(node.value, str) or not node.value:
                errors.append("Variable missing name")
            if node.left or node.right or node.argument:
                errors.append("Variable cannot have children")

        elif node.node_type == NodeType.FUNCTION:
            if not isinstance(node.value, str) or not node.value:
                errors.append("Function call missing function name")
            if node.argument is None:
                errors.append("Function call missing argument")
            if node.left or node.right:
                errors.append("Function call takes exactly one operand")

        elif node.node_type == NodeType.BINARY:
            if node.operator not in BINARY_OPERATORS:
                errors.append(f"Unsupported binary operator: {node.operator}")
            if not (node.left and node.right):
                errors.append("Binary operator missing operands")

        elif node.node_type == NodeType.RATIO:
            if node.operator != "/":
                errors.append("Ratio operator must be '/'")
            if not (node.left and node.right):
                errors.append("Ratio missing numerator or denominator")

        elif node.node_type == NodeType.EMPTY:
            if node.value is not None or node.left or node.right or node.argument:
                errors.append("Empty node cannot carry a payload")

        return errors

    @staticmethod
    def validate_ast(root: ExpressionNode) -> List[str]:
        """Recursively validate an entire tree."""
        errors = []

        def visit(node: ExpressionNode):
            errors.extend(ASTValidator.validate_node(node))

            if node.node_type == NodeType.EMPTY and node is not root:
                errors.append("Empty node is only valid as a tree root")

            for child in [node.left, node.right, node.argument]:
                if child:
                    visit(child)

        visit(root)
        return errors


# Constructors


def number(value: Union[int, float]) -> ExpressionNode:
    return ExpressionNode(node_type=NodeType.NUMBER, value=value)


def variable(name: str) -> ExpressionNode:
    return ExpressionNode(node_type=NodeType.VARIABLE, value=name)


def function(name: str, argument: ExpressionNode) -> ExpressionNode:
    return ExpressionNode(node_type=NodeType.FUNCTION, value=name, argument=argument)


def binary(operator: str, left: ExpressionNode, right: ExpressionNode) -> ExpressionNode:
    """Build a binary node; ``/`` is routed to a ratio."""
    if operator == "/":
        return ratio(left, right)
    return ExpressionNode(
        node_type=NodeType.BINARY, operator=operator, left=left, right=right
    )


def ratio(numerator: ExpressionNode, denominator: ExpressionNode) -> ExpressionNode:
    return ExpressionNode(
        node_type=NodeType.RATIO, operator="/", left=numerator, right=denominator
    )


def empty() -> ExpressionNode:
    return ExpressionNode(node_type=NodeType.EMPTY)


# Tree metrics


def count_nodes(node: ExpressionNode) -> int:
    """Count total nodes in a tree."""
    count = 1
    for child in [node.left, node.right, node.argument]:
        if child:
            count += count_nodes(child)
    return count


def tree_depth(node: ExpressionNode) -> int:
    """Calculate maximum depth of a tree."""
    max_depth = 0
    for child in [node.left, node.right, node.argument]:
        if child:
            max_depth = max(max_depth, tree_depth(child))
    return max_depth + 1


def needs_parentheses(
    child: ExpressionNode, parent: ExpressionNode, is_right: bool
) -> bool:
    """
    Whether ``child`` must be wrapped when rendered infix inside ``parent``.

    A lower precedence child is always wrapped. Operators are left
    associative except ``^``, so an equal precedence right operand is wrapped
    too, as is any operator in the base of a power.
    """
    if not (child.is_binary and parent.is_binary):
        return False

    child_precedence = child.precedence()
    parent_precedence = parent.precedence()

    if parent.operator == "^":
        return not is_right and child_precedence <= parent_precedence
    if is_right:
        return child_precedence <= parent_precedence
    return child_precedence < parent_precedence


def free_variables(node: ExpressionNode) -> Set[str]:
    """Collect the variable names referenced in a tree."""
    names = set()

    def visit(n: ExpressionNode):
        if n.node_type == NodeType.VARIABLE:
            names.add(n.value)
        for child in [n.left, n.right, n.argument]:
            if child:
                visit(child)

    visit(node)
    return names


# Forward reference resolution
ExpressionNode.model_rebuild()


__all__ = [
    "NodeType",
    "ExpressionNode",
    "ASTValidator",
    "OPERATOR_PRECEDENCE",
    "SYMMETRIC_OPERATORS",
    "BINARY_OPERATORS",
    "FUNCTION_PRECEDENCE",
    "number",
    "variable",
    "function",
    "binary",
    "ratio",
    "empty",
    "count_nodes",
    "tree_depth",
    "free_variables",
    "needs_parentheses",
]
