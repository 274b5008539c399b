"""
Shader generator for the graphing surface.
"""

from pathlib import Path
from typing import Optional, Tuple, Union
import logging

from .template_engine import TemplateEngine

logger = logging.getLogger(__name__)

# A constant sample never changes sign, so nothing is plotted
EMPTY_SAMPLE = "1.0"


class ShaderGenerator:
    """
    Embeds generated code into fragment shader source.

    The fragment shader samples the expression at the four neighbours of each
    pixel and colours the pixel when the sign changes horizontally or
    vertically, which traces the curve where the expression is zero.
    """

    def __init__(
        self,
        template_dir: Optional[str] = None,
        function_name: str = "getSample",
        precision: str = "mediump",
        axis_width: float = 1.0 / 32.0,
        axis_color: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0),
        curve_color: Tuple[float, float, float, float] = (0.0, 0.0, 1.0, 1.0),
        draw_axes: bool = True,
    ):
        self.template_engine = TemplateEngine(template_dir)
        self.function_name = function_name
        self.precision = precision
        self.axis_width = axis_width
        self.axis_color = axis_color
        self.curve_color = curve_color
        self.draw_axes = draw_axes
        self.shader_extension = ".frag"

        logger.debug(f"Initialized {self.__class__.__name__}")

    def _context(self, code: str) -> dict:
        return {
            "code": code or EMPTY_SAMPLE,
            "function_name": self.function_name,
            "precision": self.precision,
            "axis_width": self.axis_width,
            "axis_color": self.axis_color,
            "curve_color": self.curve_color,
            "draw_axes": self.draw_axes,
        }

    def sample_function(self, code: str) -> str:
        """Wrap code in ``float getSample(float x, float y)``."""
        return self.template_engine.render_template(
            "sample_function.glsl.j2", self._context(code)
        )

    def fragment_shader(self, code: str) -> str:
        """Render the complete fragment shader source for the code."""
        return self.template_engine.render_template(
            "fragment_shader.glsl.j2", self._context(code)
        )

    def write_fragment_shader(self, code: str, path: Union[str, Path]) -> str:
        """
        Render the fragment shader and write it to ``path``.

        A path without a suffix gets ``.frag`` appended.

        Returns:
            The path written to
        """
        file_path = Path(path)
        if not file_path.suffix:
            file_path = file_path.with_suffix(self.shader_extension)

        return self._write_file(self.fragment_shader(code), file_path)

    def _write_file(self, content: str, file_path: Path) -> str:
        """Write content to file and return path."""
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", encoding="utf-8") as f:
            f.write(content)

        logger.info(f"Generated {file_path}")
        return str(file_path)
