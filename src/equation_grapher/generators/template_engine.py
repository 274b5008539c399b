"""
Template engine for shader source generation using Jinja2.
"""

import re
from pathlib import Path
from typing import Dict, Any, Optional, Sequence
import logging

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..converters.code_renderer import format_float

logger = logging.getLogger(__name__)


class TemplateEngine:
    """Template engine for processing shader templates using Jinja2."""

    def __init__(self, template_dir: Optional[str] = None):
        """
        Initialize the template engine.

        Args:
            template_dir: Directory containing template files. If None, uses default templates directory.
        """
        if template_dir is None:
            # Default to templates directory relative to this file
            current_dir = Path(__file__).parent
            template_dir = current_dir.parent / "templates"

        self.template_dir = Path(template_dir)

        # Shader source is not markup, nothing is escaped
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

        # Add custom filters
        self.env.filters["glsl_float"] = self._glsl_float_filter
        self.env.filters["vec4"] = self._vec4_filter
        self.env.filters["identifier"] = self._identifier_filter

        logger.info(f"Template engine initialized with directory: {self.template_dir}")

    def _glsl_float_filter(self, value: float) -> str:
        """Format a number as a floating point literal."""
        return format_float(value)

    def _vec4_filter(self, value: Sequence[float]) -> str:
        """Convert an RGBA sequence to a vec4 constructor."""
        components = list(value)
        if len(components) != 4:
            raise ValueError(f"vec4 needs 4 components, got {len(components)}")
        return f"vec4({', '.join(format_float(c) for c in components)})"

    def _identifier_filter(self, value: str) -> str:
        """Reduce a name to a valid identifier."""
        value = re.sub(r"\W+", "_", value.strip())
        if not value or value[0].isdigit():
            value = f"_{value}"
        return value

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Name of the template file (e.g., 'fragment_shader.glsl.j2')
            context: Dictionary of variables to pass to the template

        Returns:
            Rendered template as string

        Raises:
            jinja2.TemplateNotFound: If template file doesn't exist
            jinja2.UndefinedError: If the context lacks a variable the template uses
        """
        try:
            template = self.env.get_template(template_name)
            rendered = template.render(context)

            logger.debug(f"Successfully rendered template: {template_name}")
            return rendered

        except Exception as e:
            logger.error(f"Failed to render template {template_name}: {str(e)}")
            raise

    def render_string(self, template_string: str, context: Dict[str, Any]) -> str:
        """
        Render a template string with the given context.

        Args:
            template_string: Template content as string
            context: Dictionary of variables to pass to the template

        Returns:
            Rendered template as string
        """
        try:
            template = self.env.from_string(template_string)
            rendered = template.render(context)

            logger.debug("Successfully rendered template string")
            return rendered

        except Exception as e:
            logger.error(f"Failed to render template string: {str(e)}")
            raise

    def list_templates(self) -> list:
        """List the available template filenames."""
        if not self.template_dir.exists():
            return []

        return sorted(file_path.name for file_path in self.template_dir.glob("*.j2"))

    def template_exists(self, template_name: str) -> bool:
        template_path = self.template_dir / template_name
        return template_path.exists()
