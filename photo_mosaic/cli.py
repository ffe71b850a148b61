"""
Command-line interface for the photo mosaic generator, built with Typer.

Usage:
    photo-mosaic SOURCE LIBRARY DESTINATION [--min-tiles N] [--white X Y Z]
                 [--report CSV] [--metric NAME ...] [--verbose]

The exit code is 1 when the mosaic cannot be built (bad parameters, too few
library images, unsupported output format, missing files).
"""

import time
from pathlib import Path
from typing import List, Optional, Tuple

import typer

from .config import DEFAULT_MIN_TILES_PER_SIDE, DEFAULT_REFERENCE_WHITE
from .exceptions import MosaicError
from .metrics import SIMILARITY_METRICS, compute_mean_delta_e
from .mosaic_builder import generate_mosaic
from .utils import setup_logging

app = typer.Typer(
    name="photo-mosaic",
    help="Build a photo mosaic from a source image and a library of images.",
    add_completion=False,
)


@app.command()
def main(
    source: Path = typer.Argument(..., help="Source image to recreate"),
    library: Path = typer.Argument(..., help="Directory of library images (searched recursively)"),
    destination: Path = typer.Argument(..., help="Output file; the extension selects the format"),
    min_tiles: int = typer.Option(
        DEFAULT_MIN_TILES_PER_SIDE, "--min-tiles", "-n",
        help="Number of tiles along the shorter side of the source image",
    ),
    white: Tuple[float, float, float] = typer.Option(
        DEFAULT_REFERENCE_WHITE, "--white",
        help="Reference white as X Y Z (default: D65 daylight)",
    ),
    report: Optional[Path] = typer.Option(
        None, "--report", help="Write a CSV with one row per tile",
    ),
    metric: Optional[List[str]] = typer.Option(
        None, "--metric", "-m",
        help="Score the mosaic against the source: mse, psnr, ssim or ms_ssim (repeatable)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Create a mosaic of SOURCE from the images in LIBRARY and save it to DESTINATION."""
    logger = setup_logging("DEBUG" if verbose else "INFO")

    metrics = metric or []
    unknown = [name for name in metrics if name not in SIMILARITY_METRICS]
    if unknown:
        logger.error(f"Unknown metric(s) {unknown}, choose from {list(SIMILARITY_METRICS)}")
        raise typer.Exit(code=1)

    start_time = time.time()
    try:
        result = generate_mosaic(source, library, destination, min_tiles, white)
    except (MosaicError, FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        raise typer.Exit(code=1)

    if report is not None:
        report.parent.mkdir(parents=True, exist_ok=True)
        result.to_dataframe().to_csv(report, index=False)
        logger.info(f"Wrote tile report to {report}")

    grid = result.grid
    typer.echo(
        f"Saved {grid.mosaic_width}x{grid.mosaic_height} mosaic "
        f"({grid.tiles_wide}x{grid.tiles_high} tiles) to {destination} "
        f"in {time.time() - start_time:.1f}s, "
        f"mean dE00 {compute_mean_delta_e(result.assignments):.2f}"
    )

    if metrics:
        try:
            scores = result.evaluate(metrics)
        except ValueError as e:
            logger.error(str(e))
            raise typer.Exit(code=1)

        for name, value in scores.items():
            typer.echo(f"{name}: {value:.4f}")


if __name__ == "__main__":
    app()
