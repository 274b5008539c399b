"""
End-to-end tests for the expression pipeline.
"""

import pytest
from pydantic import ValidationError

from equation_grapher.converters.simplifier import equivalent
from equation_grapher.core.pipeline import ExpressionPipeline, PipelineError
from equation_grapher.models.ast_schema import NodeType, binary, number, variable
from equation_grapher.models.pipeline_models import PipelineConfig

RATIO_3_2 = '<span class="ratio"><span>3</span><span>2</span></span>'


class TestExpressionPipeline:
    """Test class for the text to notation and code pipeline."""

    @pytest.fixture
    def pipeline(self):
        return ExpressionPipeline()

    def test_quadratic(self, pipeline):
        result = pipeline.process("y=x^2-2x+1")

        assert result.success
        assert result.notation == "y = x<sup>2</sup> - 2x + 1"
        assert result.simplified_notation == "y = x<sup>2</sup> - 2x + 1"
        assert result.steps == ["y = x<sup>2</sup> - 2x + 1"]
        assert result.iterations == 0
        assert result.reached_fixpoint
        assert result.code == "y - (x*x - 2.0*x + 1.0)"
        assert pipeline.code_renderer.render(result.simplified_root.right) == (
            "x*x - 2.0*x + 1.0"
        )
        assert result.tokens_count == 10

    def test_constant_sum(self, pipeline):
        result = pipeline.process("2+3")

        assert result.steps == ["y = 2 + 3", "y = 5"]
        assert result.simplified_root == binary("=", variable("y"), number(5))
        assert result.code == "y - 5.0"
        assert result.iterations == 1

    def test_fraction_reduction(self):
        pipeline = ExpressionPipeline(PipelineConfig(auto_complete_equation=False))
        result = pipeline.process("6/4")

        assert result.simplified_notation == RATIO_3_2
        assert result.code == "3.0/2.0"

    def test_repeated_factor_becomes_power(self, pipeline):
        result = pipeline.process("y = x*x*x")

        assert result.steps == [
            "y = xxx",
            "y = xx<sup>2</sup>",
            "y = x<sup>3</sup>",
        ]
        assert result.code == "y - x*x*x"

    def test_step_sequence(self, pipeline):
        result = pipeline.process("2+3+4")

        assert result.steps == ["y = 2 + 3 + 4", "y = 5 + 4", "y = 9"]
        assert result.reached_fixpoint

    def test_iteration_cap(self):
        pipeline = ExpressionPipeline(PipelineConfig(max_iterations=1))
        result = pipeline.process("2+3+4")

        assert result.success
        assert result.steps == ["y = 2 + 3 + 4", "y = 5 + 4"]
        assert not result.reached_fixpoint
        assert result.code == "y - (5.0 + 4.0)"

    def test_no_simplify(self):
        pipeline = ExpressionPipeline({"simplify": False})
        result = pipeline.process("2+3")

        assert result.steps == ["y = 2 + 3"]
        assert result.simplified_root == result.root
        assert result.code == "y - (2.0 + 3.0)"

    def test_parse_failure(self, pipeline):
        result = pipeline.process("(x+1")

        assert not result.success
        assert "Unmatched" in result.error_message
        assert result.root is None
        assert result.code == ""

    def test_empty_input(self, pipeline):
        result = pipeline.process("   ")

        assert result.success
        assert result.root.node_type == NodeType.EMPTY
        assert result.notation == ""
        assert result.code == ""

    def test_power_beyond_float_range_stays_unfolded(self, pipeline):
        result = pipeline.process("y = (10^64)^5")

        assert result.success
        assert result.reached_fixpoint
        assert result.simplified_root.right == binary("^", number(10**64), number(5))
        assert result.code == "y - 1e+64*1e+64*1e+64*1e+64*1e+64"

    def test_huge_integer_plus_decimal(self, pipeline):
        result = pipeline.process("1" + "0" * 300 + " + 0.5")

        assert result.success
        assert result.simplified_root.right == number(1e300)
        assert result.code == "y - 1e+300"

    @pytest.mark.parametrize("literal", ["1" * 5000, "1" + "0" * 400])
    def test_literal_beyond_float_range_fails(self, pipeline, literal):
        result = pipeline.process(literal + " + 0.5")

        assert not result.success
        assert "too large" in result.error_message
        assert result.code == ""

    def test_result_serializes(self, pipeline):
        dumped = pipeline.process("y = sin(x)").model_dump(mode="json")
        assert dumped["code"] == "y - sin(x)"
        assert dumped["root"]["node_type"] == "binary"


class TestAutoComplete:
    """Test turning bare expressions into equations."""

    @pytest.fixture
    def pipeline(self):
        return ExpressionPipeline()

    def test_expression_without_y(self, pipeline):
        result = pipeline.process("sin(x)")
        assert result.notation == "y = sin(x)"
        assert result.code == "y - sin(x)"

    def test_expression_with_y(self, pipeline):
        result = pipeline.process("x^2 + y^2 - 4")
        assert result.notation == "x<sup>2</sup> + y<sup>2</sup> - 4 = 0"
        assert result.code == "x*x + y*y - 4.0 - 0.0"

    def test_equation_is_unchanged(self, pipeline):
        result = pipeline.process("x = 3")
        assert result.notation == "x = 3"
        assert result.code == "x - 3.0"

    def test_disabled(self):
        pipeline = ExpressionPipeline(PipelineConfig(auto_complete_equation=False))
        result = pipeline.process("sin(x)")
        assert result.notation == "sin(x)"
        assert result.code == "sin(x)"


class TestPipelineConfig:
    def test_defaults(self):
        config = PipelineConfig()
        assert config.max_iterations == 20
        assert config.auto_complete_equation
        assert config.simplify

    def test_max_iterations_must_be_positive(self):
        with pytest.raises(ValidationError):
            PipelineConfig(max_iterations=0)

    @pytest.mark.parametrize(
        "options", [{"max_iterations": 0}, {"unknown_option": True}]
    )
    def test_invalid_options_raise_pipeline_error(self, options):
        with pytest.raises(PipelineError):
            ExpressionPipeline(options)


def strip_markup(notation):
    """Rewrite rendered markup as plain infix text with explicit grouping."""
    return (
        notation.replace('<span class="ratio"><span>', "((")
        .replace("</span><span>", ")/(")
        .replace("</span></span>", "))")
        .replace("<sup>", "^(")
        .replace("</sup>", ")")
    )


class TestProperties:
    """Test properties that hold for any expression."""

    @pytest.fixture
    def pipeline(self):
        return ExpressionPipeline()

    @pytest.mark.parametrize(
        "text",
        [
            "y=x^2-2x+1",
            "a-(b-c)",
            "a-b-c",
            "(a+b)(a-b)",
            "2^3^2",
            "(2^3)^2",
            "-2^2",
            "(-2)^2",
            "x - -2",
            "3*-x",
            "2 sin(x)^2 + cos x",
            "(x+1)/(x-1)",
            "a/b/c",
            "a/(b/c)",
            "x^(n+1) = 2pi r",
            "abs(x) + floor(y) * ceil(x / 2)",
            "theta = 2x",
            "l*n",
            "p*i",
            "s*i*n + c*o*s",
            "0.00001x",
            "y = 0.125 - 0.0000003x",
        ],
    )
    def test_notation_round_trip(self, pipeline, text):
        root = pipeline.parser.parse(text)
        plain = strip_markup(pipeline.notation_renderer.render(root))
        assert equivalent(pipeline.parser.parse(plain), root), plain

    @pytest.mark.parametrize(
        "text",
        ["2+3+4", "y = x*x*x", "x/2 + y/2", "(1/2)*(3/4)", "x*2 + 0", "6/4"],
    )
    def test_fixpoint_is_stable(self, pipeline, text):
        result = pipeline.process(text)
        assert result.reached_fixpoint

        again, _ = pipeline.simplifier.simplify_step(result.simplified_root)
        assert pipeline.notation_renderer.render(again) == result.simplified_notation
