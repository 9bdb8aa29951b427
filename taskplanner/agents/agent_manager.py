from dataclasses import dataclass
from typing import Callable, Optional

from taskplanner.agents.library.planner_agent import PlannerAgent
from taskplanner.core import AgentInfo, AllModelEnum

DEFAULT_AGENT = "planner"


@dataclass
class AgentConfig:
    description: str
    factory: Callable[[], PlannerAgent]
    _cached_agent: Optional[PlannerAgent] = None

    def get_agent(self) -> PlannerAgent:
        """Lazy-build the agent when first accessed."""
        if self._cached_agent is None:
            self._cached_agent = self.factory()
        return self._cached_agent


def create_planner_agent(model_name: AllModelEnum | None = None) -> PlannerAgent:
    """Planner wired from settings and the configured chat model."""
    from taskplanner.agents.library.planner_agent.conversation import (
        ConversationManager,
    )
    from taskplanner.agents.library.planner_agent.sow_generator import SOWGenerator
    from taskplanner.agents.llm import get_completion
    from taskplanner.settings import settings

    complete = get_completion(model_name)
    return PlannerAgent(
        complete,
        sow_generator=SOWGenerator(
            complete, hourly_rate=settings.HOURLY_RATE, currency=settings.CURRENCY
        ),
        conversation_manager=ConversationManager(
            complete,
            max_history_length=settings.MAX_HISTORY_LENGTH,
            context_retention=settings.context_retention,
        ),
        auto_generate_sow=settings.AUTO_GENERATE_SOW,
        enable_conversation_mode=settings.ENABLE_CONVERSATION_MODE,
        default_template=settings.DEFAULT_SOW_TEMPLATE,
    )


agent_configs: dict[str, AgentConfig] = {
    "planner": AgentConfig(
        description="Conversational task planner - parses requests into RTF structures, synthesizes action plans, generates Statements of Work and tracks plan execution",
        factory=create_planner_agent,
    ),
}


def get_agent(agent_id: str = DEFAULT_AGENT) -> PlannerAgent:
    return agent_configs[agent_id].get_agent()


def get_all_agent_info() -> list[AgentInfo]:
    return [
        AgentInfo(key=agent_id, description=config.description)
        for agent_id, config in agent_configs.items()
    ]
