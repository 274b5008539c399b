import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from equation_grapher.converters.code_renderer import CodeRenderer
from equation_grapher.converters.expression_parser import ExpressionParser
from equation_grapher.converters.notation_renderer import NotationRenderer
from equation_grapher.converters.simplifier import ExpressionSimplifier
from equation_grapher.models.ast_schema import (
    ExpressionNode,
    NodeType,
    binary,
    count_nodes,
    free_variables,
    number,
    variable,
)
from equation_grapher.models.pipeline_models import PipelineConfig, PipelineResult


class ExpressionPipeline:
    """Orchestrates the text to notation and code conversion.

    Runs the stages in order:
    1. Tokenizing and parsing
    2. Equation auto-completion
    3. Step-wise simplification until the rendering stops changing
    4. Code rendering of the final tree
    """

    def __init__(self, config: Optional[Union[PipelineConfig, Dict[str, Any]]] = None):
        """Initialize the pipeline.

        Args:
            config: Pipeline options, either a PipelineConfig or a plain dict

        Raises:
            PipelineError: If the options are invalid
        """
        self.logger = logging.getLogger(__name__)

        if config is None:
            config = PipelineConfig()
        elif isinstance(config, dict):
            try:
                config = PipelineConfig(**config)
            except ValidationError as e:
                raise PipelineError(f"Invalid pipeline configuration: {e}") from e

        self.config = config
        self.parser = ExpressionParser()
        self.simplifier = ExpressionSimplifier()
        self.notation_renderer = NotationRenderer()
        self.code_renderer = CodeRenderer(self.parser.function_registry)

    def process(self, text: str) -> PipelineResult:
        """Convert expression text into notation and code.

        Parse failures are reported through the result, never raised.

        Args:
            text: Expression or equation such as ``y = 2x^2``

        Returns:
            PipelineResult with the renderings of every stage
        """
        self.logger.info(f"Processing expression: {text!r}")

        parse_result = self.parser.parse_expression(text)
        if not parse_result.success:
            return PipelineResult(
                success=False,
                original_expression=text,
                error_message=parse_result.error_message,
                tokens_count=parse_result.tokens_count,
            )

        root = parse_result.root
        if root.node_type == NodeType.EMPTY:
            self.logger.info("Expression is empty, nothing to simplify")
            return PipelineResult(
                success=True,
                original_expression=text,
                root=root,
                simplified_root=root,
                steps=[""],
                nodes_count=1,
            )

        if self.config.auto_complete_equation:
            root = self.auto_complete(root)

        notation = self.notation_renderer.render(root)

        if self.config.simplify:
            simplified, steps, reached_fixpoint = self.simplify_until_fixpoint(root)
        else:
            simplified, steps, reached_fixpoint = root, [notation], True

        code = self.code_renderer.render(simplified)
        self.logger.info(f"Generated code: {code}")

        return PipelineResult(
            success=True,
            original_expression=text,
            root=root,
            simplified_root=simplified,
            notation=notation,
            simplified_notation=steps[-1],
            steps=steps,
            iterations=len(steps) - 1,
            reached_fixpoint=reached_fixpoint,
            code=code,
            tokens_count=parse_result.tokens_count,
            nodes_count=count_nodes(simplified),
        )

    def auto_complete(self, root: ExpressionNode) -> ExpressionNode:
        """Turn a bare expression into an equation.

        An expression that mentions ``y`` is set equal to zero, any other
        expression becomes the right-hand side of ``y = ...``.
        """
        if root.is_operator("=") or root.node_type == NodeType.EMPTY:
            return root

        if "y" in free_variables(root):
            self.logger.debug("Completing expression as an implicit equation")
            return binary("=", root, number(0))

        self.logger.debug("Completing expression as y = expression")
        return binary("=", variable("y"), root)

    def simplify_until_fixpoint(
        self, root: ExpressionNode
    ) -> Tuple[ExpressionNode, List[str], bool]:
        """Apply simplification steps until two renderings match.

        Returns:
            The final tree, the distinct renderings in order starting with the
            input, and whether a fixpoint was reached within the step limit
        """
        current = root
        steps = [self.notation_renderer.render(current)]

        for iteration in range(1, self.config.max_iterations + 1):
            candidate, changed = self.simplifier.simplify_step(current)
            if not changed:
                return current, steps, True

            rendering = self.notation_renderer.render(candidate)
            self.logger.debug(f"Step {iteration}: {rendering}")
            if rendering == steps[-1]:
                return candidate, steps, True

            steps.append(rendering)
            current = candidate

        self.logger.info(
            f"Stopped simplifying after {self.config.max_iterations} steps "
            f"without reaching a fixpoint"
        )
        return current, steps, False


class PipelineError(Exception):
    """Raised when the pipeline cannot be set up."""

    pass
