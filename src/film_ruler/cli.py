"""CLI for film ruler calibration with concurrent processing."""

import asyncio
import json
import logging
import sys
from collections.abc import AsyncIterator
from pathlib import Path

import click

from film_ruler import config
from film_ruler.models import CalibrationConfig, CalibrationResult, FilmParams
from film_ruler.pipeline import run_calibration_file


async def process_single_image(
    img_path: Path,
    output_dir: Path,
    params: FilmParams,
    calib_config: CalibrationConfig,
    semaphore: asyncio.Semaphore,
    verbose: bool,
) -> tuple[Path, CalibrationResult | None, Exception | None]:
    """Calibrate a single image on a worker thread with semaphore control."""
    async with semaphore:
        if verbose:
            click.echo(f"Processing: {img_path}")
        try:
            result = await asyncio.to_thread(
                run_calibration_file, img_path, output_dir, params, calib_config
            )
            return (img_path, result, None)
        except Exception as e:
            return (img_path, None, e)


async def process_images_concurrent(
    images: tuple[Path, ...],
    output_dir: Path,
    params: FilmParams,
    calib_config: CalibrationConfig,
    max_concurrency: int,
    verbose: bool,
) -> AsyncIterator[tuple[Path, CalibrationResult | None, Exception | None]]:
    """Process images with a bounded in-flight queue and stream completed results."""
    semaphore = asyncio.Semaphore(max_concurrency)
    image_iter = iter(images)
    in_flight: set[asyncio.Task[tuple[Path, CalibrationResult | None, Exception | None]]] = set()

    def _schedule_next() -> bool:
        try:
            img_path = next(image_iter)
        except StopIteration:
            return False
        task = asyncio.create_task(
            process_single_image(img_path, output_dir, params, calib_config, semaphore, verbose)
        )
        in_flight.add(task)
        return True

    for _ in range(min(max_concurrency, len(images))):
        _schedule_next()

    while in_flight:
        done, _ = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
        for completed in done:
            in_flight.remove(completed)
            yield completed.result()
            _schedule_next()


def write_result_json(result: CalibrationResult, output_dir: Path) -> Path:
    """Serialize a result next to its rasters as <stem>.json."""
    out_path = output_dir / f"{Path(result.source_name).stem}.json"
    out_path.write_text(json.dumps(result.model_dump(mode="json"), indent=2))
    return out_path


@click.command()
@click.argument("images", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--output-dir",
    type=click.Path(path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory for the edge/overlay rasters and JSON results",
)
@click.option(
    "--pixels-per-mm",
    type=float,
    default=config.PIXELS_PER_MM,
    show_default=True,
    help="Nominal px/mm used to lay out the calibration boxes",
)
@click.option("--seed", type=int, default=None, help="RANSAC seed for reproducible runs")
@click.option(
    "--max-concurrency",
    type=int,
    default=config.DEFAULT_MAX_CONCURRENCY,
    help="Max concurrent image processing",
)
@click.option("--log", "show_log", is_flag=True, help="Echo diagnostic lines")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
def main(
    images: tuple[Path, ...],
    output_dir: Path,
    pixels_per_mm: float,
    seed: int | None,
    max_concurrency: int,
    show_log: bool,
    verbose: bool,
) -> None:
    """Measure film ruler targets and write annotated rasters."""
    if not images:
        click.echo("Error: No input images provided", err=True)
        sys.exit(1)
    if max_concurrency < 1:
        click.echo("Error: --max-concurrency must be >= 1", err=True)
        sys.exit(1)
    if pixels_per_mm <= 0:
        click.echo("Error: --pixels-per-mm must be > 0", err=True)
        sys.exit(1)

    # outputs are named by stem only, so equal stems would overwrite each other
    seen: dict[str, Path] = {}
    for img_path in images:
        first = seen.setdefault(img_path.stem, img_path)
        if first is not img_path:
            click.echo(
                f"Error: {first} and {img_path} share the output name '{img_path.stem}'",
                err=True,
            )
            sys.exit(1)

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    output_dir.mkdir(parents=True, exist_ok=True)
    params = FilmParams(pixels_per_mm=pixels_per_mm)
    calib_config = CalibrationConfig(ransac_seed=seed)

    async def _run() -> tuple[int, int]:
        success_count = 0
        fail_count = 0

        async for img_path, result, error in process_images_concurrent(
            images, output_dir, params, calib_config, max_concurrency, verbose
        ):
            if error or result is None:
                fail_count += 1
                click.echo(f"Error processing {img_path}: {error}", err=True)
                continue

            out_path = write_result_json(result, output_dir)
            if verbose:
                click.echo(f"  Output: {out_path}")
                for path in (result.edge_path, result.overlay_path):
                    if path:
                        click.echo(f"  Raster: {path}")

            if show_log:
                for line in result.logs:
                    click.echo(f"  {line}")
            for e in result.errors:
                click.echo(f"  [{e.stage.value}] {e.message}", err=True)

            if result.edge_path and result.overlay_path:
                success_count += 1
            else:
                fail_count += 1

        return success_count, fail_count

    success_count, fail_count = asyncio.run(_run())

    if len(images) > 1:
        click.echo(
            f"Processed {success_count + fail_count} images: "
            f"{success_count} success, {fail_count} failed"
        )

    if fail_count > 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
