from .pipeline import ExpressionPipeline, PipelineError

__all__ = ["ExpressionPipeline", "PipelineError"]
