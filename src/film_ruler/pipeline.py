"""LangGraph pipeline for film ruler calibration."""

from pathlib import Path

import numpy as np
from langgraph.graph import END, StateGraph

from film_ruler.models import (
    CalibrationConfig,
    CalibrationResult,
    FilmParams,
    InvalidInputError,
    PipelineState,
    ProcessingError,
    ProcessingStage,
)
from film_ruler.nodes import calibrate_scale, detect_edges, measure, preprocess, render
from film_ruler.utils import cv_utils


def _route_preprocess(state: PipelineState) -> str:
    for err in state.errors:
        if err.stage == ProcessingStage.PREPROCESS and not err.recoverable:
            return END
    if state.image is not None:
        return "detect_edges"
    return END


def create_pipeline():
    graph = StateGraph(PipelineState)

    graph.add_node("preprocess", preprocess)
    graph.add_node("detect_edges", detect_edges)
    graph.add_node("calibrate_scale", calibrate_scale)
    graph.add_node("measure", measure)
    graph.add_node("render", render)

    graph.set_entry_point("preprocess")

    graph.add_conditional_edges(
        "preprocess", _route_preprocess, {"detect_edges": "detect_edges", END: END}
    )
    graph.add_edge("detect_edges", "calibrate_scale")
    graph.add_edge("calibrate_scale", "measure")
    graph.add_edge("measure", "render")
    graph.add_edge("render", END)

    return graph.compile()


def to_result(state: PipelineState) -> CalibrationResult:
    """Collect the public result from a finished pipeline state."""
    for err in state.errors:
        if not err.recoverable:
            raise InvalidInputError(err.message, err)

    h, w = state.image.shape[:2]
    return CalibrationResult(
        source_name=state.source_name,
        width=w,
        height=h,
        dense_window=state.dense_window,
        box_horizontal=state.box_horizontal,
        box_vertical=state.box_vertical,
        ticks_horizontal=state.ticks_horizontal,
        ticks_vertical=state.ticks_vertical,
        spacing_horizontal=state.spacing_horizontal,
        spacing_vertical=state.spacing_vertical,
        pixels_per_mm_h=state.pixels_per_mm_h,
        pixels_per_mm_v=state.pixels_per_mm_v,
        roi1=state.roi1,
        roi2=state.roi2,
        distances=state.distances,
        edge_path=state.edge_path,
        overlay_path=state.overlay_path,
        logs=state.logs,
        errors=state.errors,
        edge_raster=state.edge_raster,
        overlay_raster=state.overlay_raster,
    )


def run_calibration(
    image: np.ndarray,
    params: FilmParams | None = None,
    config: CalibrationConfig | None = None,
    *,
    exif_orientation: int = 1,
    source_name: str = "image",
    output_dir: str | Path | None = None,
) -> CalibrationResult:
    """
    Measure the film target in a decoded image.

    Raises InvalidInputError for empty or malformed images; every other
    failure is recorded in the result's errors and logs.
    """
    initial = PipelineState(
        image=image,
        exif_orientation=exif_orientation,
        source_name=source_name,
        output_dir=str(output_dir) if output_dir is not None else None,
        params=params or FilmParams(),
        config=config or CalibrationConfig(),
    )
    result = pipeline.invoke(initial)
    state = result if isinstance(result, PipelineState) else PipelineState(**result)
    return to_result(state)


def run_calibration_file(
    path: str | Path,
    output_dir: str | Path | None = None,
    params: FilmParams | None = None,
    config: CalibrationConfig | None = None,
) -> CalibrationResult:
    """Decode an image file, honor its EXIF orientation and calibrate it."""
    path = Path(path)
    image = cv_utils.load_image(path)
    if isinstance(image, ProcessingError):
        raise InvalidInputError(image.message, image)
    return run_calibration(
        image,
        params,
        config,
        exif_orientation=cv_utils.read_exif_orientation(path),
        source_name=path.name,
        output_dir=output_dir,
    )


pipeline = create_pipeline()
