"""Edge node: Canny edge map and the dense window anchoring the ruler corner."""

import logging

from film_ruler.models import PipelineState, ProcessingError, ProcessingStage
from film_ruler.nodes.filmcalib import build_edge_map, locate_dense_window

logger = logging.getLogger(__name__)


def detect_edges(state: PipelineState) -> PipelineState:
    """
    Build the edge map and locate the densest edge window.

    Updates state with:
    - edges: {0, 1} edge map
    - dense_window: highest-density window, or the centered fallback
    - logs/errors: bounds_degenerate when the fallback was used
    """
    cfg = state.config
    edges = build_edge_map(
        state.image,
        blur_ksize=cfg.blur_ksize,
        canny_low=cfg.canny_low,
        canny_high=cfg.canny_high,
        use_l2=cfg.canny_use_l2,
    )
    window = locate_dense_window(edges, cfg.window_height, cfg.window_width)

    logs = list(state.logs)
    errors = list(state.errors)
    if window.fallback:
        message = (
            f"dense window fallback: [{window.x_start}..{window.x_end}]x"
            f"[{window.y_start}..{window.y_end}]"
        )
        logs.append(f"[warn] {message}")
        errors.append(
            ProcessingError(
                stage=ProcessingStage.EDGES,
                error_type="bounds_degenerate",
                recoverable=True,
                message=message,
                details={"edge_pixels": int(edges.sum())},
            )
        )
    logger.debug("dense window %s (edge pixels=%d)", window, int(edges.sum()))

    return state.model_copy(
        update={"edges": edges, "dense_window": window, "logs": logs, "errors": errors}
    )
