"""StateGraph definition — the five SubClip stages wired in fixed order."""

from __future__ import annotations

from langgraph.graph import END, StateGraph

from subclip_pipeline.graph.policy import STAGE_ORDER
from subclip_pipeline.graph.state import SubClipState
from subclip_pipeline.nodes.artifact_finalizer import artifact_finalizer
from subclip_pipeline.nodes.caption_generator import caption_generator
from subclip_pipeline.nodes.overlay_generator import overlay_generator
from subclip_pipeline.nodes.request_validator import request_validator
from subclip_pipeline.nodes.transform_orchestrator import transform_orchestrator

STAGE_NODES = {
    "validate": request_validator,
    "overlay": overlay_generator,
    "transform": transform_orchestrator,
    "caption": caption_generator,
    "finalize": artifact_finalizer,
}


def build_graph():
    """Build and compile the SubClip pipeline graph.

    Validate → Overlay → Transform → Caption → Finalize. A node raising a
    ``SubClipError`` aborts the run; later nodes never execute.

    Returns:
        Compiled StateGraph ready for invocation.
    """
    graph = StateGraph(SubClipState)

    for stage in STAGE_ORDER:
        graph.add_node(stage, STAGE_NODES[stage])

    # Entry point
    graph.set_entry_point(STAGE_ORDER[0])

    for current, following in zip(STAGE_ORDER, STAGE_ORDER[1:]):
        graph.add_edge(current, following)
    graph.add_edge(STAGE_ORDER[-1], END)

    return graph.compile()
