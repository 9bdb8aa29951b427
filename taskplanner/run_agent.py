import asyncio
import json
import sys
from uuid import uuid4

from dotenv import load_dotenv

load_dotenv()

from taskplanner.agents import DEFAULT_AGENT, get_agent  # noqa: E402
from taskplanner.settings import settings  # noqa: E402
from taskplanner.utils import setup_logging  # noqa: E402

DEFAULT_REQUEST = "Write a 5-page IEEE paper on distributed caching"


def print_event(step, event) -> None:
    print(f"  [{event}] {step.name}")


async def main(request: str) -> None:
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    agent = get_agent(DEFAULT_AGENT)

    plan = await agent.create_task_plan(
        request, {"session_id": str(uuid4()), "type": "general"}
    )
    print(f"Plan {plan.plan_id}: {plan.title}")
    result = await agent.execute_plan(
        plan.plan_id, auto_execute=True, notification_callback=print_event
    )
    print(json.dumps(result.to_dict(), indent=2))
    print(json.dumps(agent.get_plan_status(plan.plan_id).to_dict(), indent=2, default=str))


if __name__ == "__main__":
    asyncio.run(main(" ".join(sys.argv[1:]) or DEFAULT_REQUEST))
