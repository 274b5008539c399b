"""Equation to shader conversion library.

This library parses mathematical expressions and equations, simplifies them
step by step, and renders them as display markup and as shading-language
code for plotting on a graphing surface.
"""

from equation_grapher.core.pipeline import ExpressionPipeline, PipelineError
from equation_grapher.converters.tokenizer import ExpressionLexer, NoTokensFoundError
from equation_grapher.converters.expression_parser import (
    ExpressionParser,
    ExpressionParseError,
    MalformedExpressionError,
    UnbalancedParenthesesError,
)
from equation_grapher.converters.simplifier import ExpressionSimplifier
from equation_grapher.converters.notation_renderer import NotationRenderer
from equation_grapher.converters.code_renderer import CodeRenderer
from equation_grapher.generators.shader_generator import ShaderGenerator
from equation_grapher.models.ast_schema import ExpressionNode, NodeType
from equation_grapher.models.pipeline_models import PipelineConfig, PipelineResult

# Version
__version__ = "0.1.0"

# Public API
__all__ = [
    # Core components
    "ExpressionPipeline",
    "PipelineError",
    "PipelineConfig",
    "PipelineResult",
    # Converters
    "ExpressionLexer",
    "ExpressionParser",
    "ExpressionSimplifier",
    "NotationRenderer",
    "CodeRenderer",
    "ShaderGenerator",
    # Tree model
    "ExpressionNode",
    "NodeType",
    # Errors
    "NoTokensFoundError",
    "ExpressionParseError",
    "MalformedExpressionError",
    "UnbalancedParenthesesError",
    # Version
    "__version__",
]
