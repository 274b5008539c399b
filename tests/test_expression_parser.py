"""
Tests for parsing expression text into expression trees.

Covers operator precedence, associativity, implicit multiplication,
function binding, unary minus and malformed input.
"""

import pytest

from equation_grapher.converters.expression_parser import (
    ExpressionParseError,
    ExpressionParser,
    MalformedExpressionError,
    UnbalancedParenthesesError,
)
from equation_grapher.models.parser_models import (
    create_default_function_registry,
    create_default_operator_registry,
)
from equation_grapher.models.ast_schema import (
    NodeType,
    binary,
    function,
    number,
    ratio,
    variable,
)

x = variable("x")
y = variable("y")


class TestExpressionParser:
    """Test class for the shunting-yard parser."""

    @pytest.fixture
    def parser(self):
        return ExpressionParser()

    # ============================================================================
    # PRECEDENCE AND ASSOCIATIVITY
    # ============================================================================

    def test_precedence(self, parser):
        test_cases = [
            ("2+3", binary("+", number(2), number(3))),
            ("2+3*4", binary("+", number(2), binary("*", number(3), number(4)))),
            ("2*3+4", binary("+", binary("*", number(2), number(3)), number(4))),
            ("2*x^2", binary("*", number(2), binary("^", x, number(2)))),
            ("y = x + 1", binary("=", y, binary("+", x, number(1)))),
            ("x/2", ratio(x, number(2))),
        ]

        for text, expected in test_cases:
            assert parser.parse(text) == expected, f"Failed for {text}"

    def test_subtraction_is_left_associative(self, parser):
        a, b, c = variable("a"), variable("b"), variable("c")
        assert parser.parse("a-b-c") == binary("-", binary("-", a, b), c)

    def test_division_is_left_associative(self, parser):
        assert parser.parse("8/4/2") == ratio(
            ratio(number(8), number(4)), number(2)
        )

    def test_power_is_right_associative(self, parser):
        assert parser.parse("2^3^2") == binary(
            "^", number(2), binary("^", number(3), number(2))
        )

    def test_parentheses_override_precedence(self, parser):
        assert parser.parse("(2+3)*4") == binary(
            "*", binary("+", number(2), number(3)), number(4)
        )

    def test_quadratic(self, parser):
        expected = binary(
            "=",
            y,
            binary(
                "+",
                binary("-", binary("^", x, number(2)), binary("*", number(2), x)),
                number(1),
            ),
        )
        assert parser.parse("y=x^2-2x+1") == expected

    # ============================================================================
    # IMPLICIT MULTIPLICATION
    # ============================================================================

    def test_implicit_multiplication(self, parser):
        test_cases = [
            ("2x", binary("*", number(2), x)),
            ("xy", binary("*", x, y)),
            ("2(x+1)", binary("*", number(2), binary("+", x, number(1)))),
            (
                "(x+1)(x-1)",
                binary("*", binary("+", x, number(1)), binary("-", x, number(1))),
            ),
            ("2sin(x)", binary("*", number(2), function("sin", x))),
            ("2.5x", binary("*", number(2.5), x)),
        ]

        for text, expected in test_cases:
            assert parser.parse(text) == expected, f"Failed for {text}"

    def test_implicit_multiplication_binds_like_product(self, parser):
        # 2x^2 is 2 * (x^2)
        assert parser.parse("2x^2") == binary(
            "*", number(2), binary("^", x, number(2))
        )

    def test_constant_juxtaposition(self, parser):
        assert parser.parse("pi r^2") == binary(
            "*", variable("π"), binary("^", variable("r"), number(2))
        )

    # ============================================================================
    # FUNCTIONS
    # ============================================================================

    def test_function_call(self, parser):
        assert parser.parse("sin(x)") == function("sin", x)

    def test_function_argument_expression(self, parser):
        assert parser.parse("cos(x + 1)") == function("cos", binary("+", x, number(1)))

    def test_function_without_parentheses_takes_power(self, parser):
        assert parser.parse("sin x^2") == function("sin", binary("^", x, number(2)))

    def test_function_without_parentheses_stops_at_sum(self, parser):
        assert parser.parse("sin x + 1") == binary("+", function("sin", x), number(1))

    def test_parenthesized_call_binds_before_power(self, parser):
        assert parser.parse("sin(x)^2") == binary("^", function("sin", x), number(2))

    def test_nested_functions(self, parser):
        assert parser.parse("abs(sin(x))") == function("abs", function("sin", x))

    # ============================================================================
    # UNARY MINUS
    # ============================================================================

    def test_negative_literal(self, parser):
        assert parser.parse("-2") == number(-2)

    def test_negative_literal_in_sum(self, parser):
        assert parser.parse("x - -2") == binary("-", x, number(-2))

    def test_negated_variable(self, parser):
        assert parser.parse("-x") == binary("*", number(-1), x)

    def test_negated_power_keeps_sign_outside(self, parser):
        assert parser.parse("-2^2") == binary(
            "*", number(-1), binary("^", number(2), number(2))
        )

    def test_parenthesized_negative_base(self, parser):
        assert parser.parse("(-2)^2") == binary("^", number(-2), number(2))

    def test_negative_exponent(self, parser):
        assert parser.parse("x^-2") == binary("^", x, number(-2))

    def test_negation_after_product(self, parser):
        assert parser.parse("3*-x") == binary(
            "*", number(3), binary("*", number(-1), x)
        )

    # ============================================================================
    # LITERALS AND EMPTY INPUT
    # ============================================================================

    def test_integer_and_float_literals(self, parser):
        assert parser.parse("3").value == 3
        assert isinstance(parser.parse("3").value, int)
        assert parser.parse("3.5").value == 3.5
        assert isinstance(parser.parse("2.").value, float)

    @pytest.mark.parametrize("text", ["", "   "])
    def test_empty_input(self, parser, text):
        assert parser.parse(text).node_type == NodeType.EMPTY

    # ============================================================================
    # ERRORS
    # ============================================================================

    @pytest.mark.parametrize("text", ["(x+1", "x+1)", "((x)", ")("])
    def test_unbalanced_parentheses(self, parser, text):
        with pytest.raises(UnbalancedParenthesesError):
            parser.parse(text)

    @pytest.mark.parametrize("text", ["x+", "+", "*2", "()", "sin()", "x $ 2"])
    def test_malformed(self, parser, text):
        with pytest.raises(MalformedExpressionError):
            parser.parse(text)

    def test_errors_are_value_errors(self, parser):
        with pytest.raises(ValueError):
            parser.parse("(x")
        assert issubclass(UnbalancedParenthesesError, ExpressionParseError)

    def test_error_position(self, parser):
        with pytest.raises(UnbalancedParenthesesError) as exc:
            parser.parse("x+1)")
        assert exc.value.position == 3

    @pytest.mark.parametrize(
        "literal", ["1" * 5000, "9" * 400, "9" * 400 + ".5"]
    )
    def test_literal_beyond_float_range(self, parser, literal):
        with pytest.raises(MalformedExpressionError) as exc:
            parser.parse(f"x + {literal}")
        assert exc.value.position == 4
        assert "too large" in exc.value.message

    def test_long_literal_within_float_range(self, parser):
        assert parser.parse("1" + "0" * 300).value == 10**300


class TestParseExpression:
    """Test the non-raising parse entry point."""

    @pytest.fixture
    def parser(self):
        return ExpressionParser()

    def test_success_result(self, parser):
        result = parser.parse_expression("y = 2x")

        assert result.success
        assert result.original_expression == "y = 2x"
        assert result.root == binary("=", y, binary("*", number(2), x))
        assert result.tokens_count == 4
        assert result.ast_nodes_count == 5

    def test_failure_result(self, parser):
        result = parser.parse_expression("(x+1")

        assert not result.success
        assert result.root is None
        assert "Unmatched" in result.error_message
        assert result.errors[0].position == 0
        assert result.tokens_count == 4

    def test_error_fields(self, parser):
        error = parser.parse_expression("x+").errors[0]
        assert set(error.model_dump()) == {"message", "position"}

    def test_empty_result(self, parser):
        result = parser.parse_expression("")

        assert result.success
        assert result.root.node_type == NodeType.EMPTY
        assert result.tokens_count == 0

    def test_parser_is_reusable(self, parser):
        first = parser.parse("x+1")
        parser.parse_expression("(((")
        assert parser.parse("x+1") == first


class TestRegistries:
    """Test the default function and operator registries."""

    def test_function_lookup_is_case_insensitive(self):
        registry = create_default_function_registry()
        assert registry.is_supported("SIN")
        assert registry.get_function("Ln").glsl_equivalent == "log"
        assert registry.get_function("sinh") is None

    def test_function_names_longest_first(self):
        names = create_default_function_registry().names()
        assert names[0] == "floor"
        assert len(names[0]) >= len(names[-1])

    def test_operators(self):
        registry = create_default_operator_registry()
        assert registry.is_supported("^")
        assert not registry.is_supported("%")

        power = registry.get_operator("^")
        assert power.associativity == "right"
        assert power.incoming_precedence == 6
        assert registry.get_operator("-").incoming_precedence == 2
        assert registry.get_operator("*").symmetric
        assert not registry.get_operator("-").symmetric
