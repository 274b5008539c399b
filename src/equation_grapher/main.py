"""
Equation Grapher command line interface

This module handles:
1. Parsing and simplifying an expression given on the command line
2. Printing the notation of every simplification step and the final code
3. Writing a fragment shader that plots the expression
"""

import sys
import logging
from typing import List, Optional

from equation_grapher.core.pipeline import ExpressionPipeline, PipelineError
from equation_grapher.generators.shader_generator import ShaderGenerator
from equation_grapher.models.pipeline_models import PipelineResult


def print_result(result: PipelineResult) -> None:
    """Print the renderings of a processed expression."""
    print(f"Notation: {result.notation}")

    if len(result.steps) > 1:
        print("\nSimplification steps:")
        for index, step in enumerate(result.steps):
            print(f"  {index}. {step}")

    if not result.reached_fixpoint:
        print(f"\n⚠️  Stopped after {result.iterations} steps without reaching a fixpoint")

    print(f"\nSimplified: {result.simplified_notation}")
    print(f"Code: {result.code}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the equation-grapher CLI command."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Simplify an equation and convert it to shader code",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show the simplification steps and the generated code
  equation-grapher "y = x^2 - 2x + 1"

  # Write a fragment shader that plots a circle
  equation-grapher "x^2 + y^2 = 4" --shader circle.frag

  # Print the full result as JSON
  equation-grapher "sin(x)" --json
        """,
    )

    parser.add_argument("expression", help="Expression or equation to process")
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=20,
        metavar="N",
        help="Maximum number of simplification steps (default: 20)",
    )
    parser.add_argument(
        "--no-simplify",
        action="store_true",
        help="Render the parsed expression without simplifying it",
    )
    parser.add_argument(
        "--no-auto-complete",
        action="store_true",
        help="Do not turn a bare expression into an equation",
    )
    parser.add_argument(
        "--shader",
        type=str,
        metavar="PATH",
        help="Write a fragment shader plotting the expression to PATH",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full result as JSON",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        pipeline = ExpressionPipeline(
            {
                "max_iterations": args.max_iterations,
                "simplify": not args.no_simplify,
                "auto_complete_equation": not args.no_auto_complete,
            }
        )
    except PipelineError as e:
        parser.error(str(e))

    result = pipeline.process(args.expression)

    if not result.success:
        print(f"❌ Could not parse {args.expression!r}: {result.error_message}")
        return 1

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print_result(result)

    if args.shader:
        shader_path = ShaderGenerator().write_fragment_shader(result.code, args.shader)
        if not args.json:
            print(f"\n✅ Fragment shader written to {shader_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
