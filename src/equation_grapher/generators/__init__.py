# Shader source generators

from .template_engine import TemplateEngine
from .shader_generator import ShaderGenerator

__all__ = [
    "TemplateEngine",
    "ShaderGenerator",
]
