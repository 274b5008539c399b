"""
Pydantic models for pipeline configuration and results.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .ast_schema import ExpressionNode


class PipelineConfig(BaseModel):
    """Options controlling how an expression is processed."""

    max_iterations: int = Field(
        default=20, ge=1, description="Upper bound on simplification steps"
    )
    auto_complete_equation: bool = Field(
        default=True, description="Turn a bare expression into an equation"
    )
    simplify: bool = True

    model_config = ConfigDict(extra="forbid")


class PipelineResult(BaseModel):
    """Outcome of processing one expression."""

    success: bool
    original_expression: str

    # Trees
    root: Optional[ExpressionNode] = None
    simplified_root: Optional[ExpressionNode] = None

    # Renderings
    notation: str = ""
    simplified_notation: str = ""
    steps: List[str] = Field(default_factory=list)
    code: str = ""

    # Simplification
    iterations: int = 0
    reached_fixpoint: bool = True

    # Metadata
    tokens_count: int = 0
    nodes_count: int = 0

    # Error case
    error_message: Optional[str] = None


__all__ = ["PipelineConfig", "PipelineResult"]
