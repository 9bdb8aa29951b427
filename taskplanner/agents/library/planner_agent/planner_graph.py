"""
Plan-creation graph.

parse_rtf -> synthesize -> (generate_sow) -> register -> END

Parsing always completes before synthesis, and synthesis before the plan
is registered. The SOW node only runs when SOW generation is enabled.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, TypedDict

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from .action_plan import ActionPlan
from .plan import Plan
from .rtf import RTFStructure
from .sow import SOWDocument
from .sow_generator import sow_options_from_context

if TYPE_CHECKING:
    from .planner import PlannerAgent

logger = logging.getLogger(__name__)


class PlanningState(TypedDict, total=False):
    input_text: str
    request_context: Dict[str, Any]
    rtf: RTFStructure
    action_plan: ActionPlan
    sow_document: Optional[SOWDocument]
    plan: Plan


def build_planning_graph(planner: "PlannerAgent") -> CompiledStateGraph:
    """Compile the plan-creation pipeline around ``planner``'s components."""

    async def parse_rtf_node(state: PlanningState) -> dict:
        context = state.get("request_context") or {}
        rtf = await planner.rtf_parser.parse_rtf(
            state["input_text"], {"type": context.get("type")}
        )
        return {"rtf": rtf}

    async def synthesize_node(state: PlanningState) -> dict:
        action_plan = await planner.synthesizer.synthesize(state["rtf"])
        logger.debug("Synthesized %d steps", len(action_plan.steps))
        return {"action_plan": action_plan}

    async def generate_sow_node(state: PlanningState) -> dict:
        rtf = state["rtf"]
        options = sow_options_from_context(
            planner.plan_title(rtf),
            state.get("request_context"),
            planner.default_template,
        )
        sow = await planner.sow_generator.generate_sow(rtf, options)
        return {"sow_document": sow}

    def register_node(state: PlanningState) -> dict:
        plan = planner.register_plan(
            state["rtf"],
            state["action_plan"],
            state.get("sow_document"),
            state.get("request_context") or {},
        )
        return {"plan": plan}

    def route_after_synthesis(state: PlanningState) -> str:
        return "generate_sow" if planner.auto_generate_sow else "register"

    graph = StateGraph(PlanningState)

    graph.add_node("parse_rtf", parse_rtf_node)
    graph.add_node("synthesize", synthesize_node)
    graph.add_node("generate_sow", generate_sow_node)
    graph.add_node("register", register_node)

    graph.set_entry_point("parse_rtf")
    graph.add_edge("parse_rtf", "synthesize")
    graph.add_conditional_edges(
        "synthesize",
        route_after_synthesis,
        {
            "generate_sow": "generate_sow",
            "register": "register",
        },
    )
    graph.add_edge("generate_sow", "register")
    graph.add_edge("register", END)

    return graph.compile()
