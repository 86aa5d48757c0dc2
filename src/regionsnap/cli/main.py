"""regionsnap CLI - Main entry point.

Provides commands for analysing a region of an image file and for
inspecting image metadata.

Exit codes:
    0: Success
    2: Bad input (unreadable image, malformed point)
    3: Runtime error
"""

import json
import sys

import click

from .. import __version__
from ..config import RegionSnapSettings
from ..exceptions import InvalidImageException
from ..fusion import FusionEngine
from ..logging import setup_logging
from ..model import BoundingBox, as_rgb_array, image_size
from .formatters import format_detections

# Exit codes
EXIT_SUCCESS = 0
EXIT_INPUT_ERROR = 2
EXIT_RUNTIME_ERROR = 3


def parse_point(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]):
    """Parse ``X,Y`` option values into float pairs."""
    points = []
    for value in values:
        parts = value.split(",")
        try:
            if len(parts) != 2:
                raise ValueError(value)
            points.append((float(parts[0]), float(parts[1])))
        except ValueError:
            raise click.BadParameter(f"expected X,Y but got '{value}'") from None
    return points


def _configure_logging(verbose: bool) -> None:
    setup_logging(level="DEBUG" if verbose else "WARNING", structured=False, add_timestamp=False)


@click.group()
@click.version_option(version=__version__, prog_name="regionsnap")
@click.pass_context
def main(ctx: click.Context) -> None:
    """regionsnap CLI - Snap a rough selection to the objects inside it."""
    ctx.ensure_object(dict)


@main.command()
@click.argument("image_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--point",
    "-p",
    "points",
    multiple=True,
    required=True,
    callback=parse_point,
    help="Point of the selection gesture as X,Y (repeat for each point)",
)
@click.option(
    "--format",
    "format_type",
    type=click.Choice(["json", "text"]),
    default="json",
    help="Output format",
)
@click.option("--best", is_flag=True, help="Also report the single best object")
@click.option("--parallel", is_flag=True, help="Run detectors concurrently")
@click.option("--layout", is_flag=True, help="Enable the layout pattern detector")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def analyze(
    image_path: str,
    points: list[tuple[float, float]],
    format_type: str,
    best: bool,
    parallel: bool,
    layout: bool,
    verbose: bool,
) -> None:
    """Detect objects inside the selection drawn on an image.

    IMAGE_PATH: Path to the image file
    """
    _configure_logging(verbose)

    settings = RegionSnapSettings(parallel_detectors=parallel, enable_layout_patterns=layout)

    try:
        image = as_rgb_array(image_path)
        with FusionEngine.create(settings, start_sweeper=False) as engine:
            objects = engine.analyze_region_sync(image, points)
            best_object = None
            if best:
                selection = BoundingBox.from_points(points).clamp(*image_size(image))
                best_object = engine.select_best_object(objects, selection)
            stats = engine.stats()
    except InvalidImageException as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_INPUT_ERROR)
    except Exception as e:
        click.echo(f"Analysis failed: {e}", err=True)
        sys.exit(EXIT_RUNTIME_ERROR)

    click.echo(
        format_detections(
            objects,
            format_type,
            best=best_object,
            stats=stats.to_dict() if stats is not None and verbose else None,
        )
    )
    sys.exit(EXIT_SUCCESS)


@main.command()
@click.argument("image_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def metadata(image_path: str, verbose: bool) -> None:
    """Print average colour, complexity and dominant colours of an image.

    IMAGE_PATH: Path to the image file
    """
    _configure_logging(verbose)

    try:
        with FusionEngine.create(start_sweeper=False) as engine:
            info = engine.describe_image(image_path)
    except InvalidImageException as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_INPUT_ERROR)
    except Exception as e:
        click.echo(f"Metadata extraction failed: {e}", err=True)
        sys.exit(EXIT_RUNTIME_ERROR)

    click.echo(json.dumps(info.to_dict(), indent=2))
    sys.exit(EXIT_SUCCESS)


if __name__ == "__main__":
    main()
