import os

os.environ.setdefault("USE_FAKE_MODEL", "true")

import json  # noqa: E402
from typing import Any, Dict, List  # noqa: E402

import pytest  # noqa: E402

PAPER_REQUEST = "Write a 5-page IEEE paper on distributed caching"

RTF_RESPONSE = {
    "role": "academic writer",
    "task": {
        "type": "paper",
        "intent": "write_research_paper",
        "description": PAPER_REQUEST,
        "scope": "multi-step",
        "priority": "high",
        "requirements": ["IEEE format", "5 pages"],
        "constraints": ["5 page limit"],
        "dependencies": [],
        "expectedOutcome": "Publication-ready paper",
    },
    "format": {
        "outputType": "document",
        "structure": "hierarchical",
        "style": "academic",
        "deliverables": [
            {
                "name": "Paper",
                "type": "document",
                "description": "IEEE formatted paper",
                "format": "PDF",
                "priority": "must-have",
            }
        ],
        "timeline": {"estimatedDuration": "2 weeks", "milestones": [], "urgency": "weeks"},
    },
    "confidence": 0.9,
    "metadata": {
        "language": "english",
        "complexity": "complex",
        "domain": "distributed systems",
        "keywords": ["caching", "IEEE"],
    },
}

ACTION_PLAN_RESPONSE = {
    "steps": [
        {
            "id": "research",
            "name": "Literature review",
            "description": "Survey distributed caching papers",
            "type": "research",
            "estimatedTime": "4 hours",
            "prerequisites": [],
            "deliverable": "Annotated bibliography",
            "tools": ["Google Scholar"],
            "validationCriteria": ["At least 10 sources"],
        },
        {
            "id": "draft",
            "name": "Draft paper",
            "description": "Write the first full draft",
            "type": "creation",
            "estimatedTime": "2 days",
            "prerequisites": ["research"],
            "deliverable": "Draft",
            "tools": ["LaTeX"],
            "validationCriteria": ["All sections present"],
        },
        {
            "id": "review",
            "name": "Review",
            "description": "Proofread and check IEEE format",
            "type": "review",
            "estimatedTime": "3 hours",
            "prerequisites": ["Draft paper"],
            "deliverable": "Final paper",
            "tools": [],
            "validationCriteria": ["Fits in 5 pages"],
        },
    ],
    "resources": [
        {
            "type": "tool",
            "name": "LaTeX",
            "description": "Typesetting",
            "availability": "available",
            "criticality": "essential",
        }
    ],
    "riskAssessment": [
        {
            "type": "timeline",
            "description": "Review takes longer",
            "probability": "medium",
            "impact": "low",
            "mitigation": "Start early",
        }
    ],
}

SOW_RESPONSE = {
    "id": "sow_paper",
    "title": "Distributed Caching Paper",
    "description": "Research paper on distributed caching",
    "scope": {
        "overview": "Write and format the paper",
        "objectives": ["Publish"],
        "inclusions": ["Writing"],
        "exclusions": ["Submission fees"],
        "boundaries": ["5 pages"],
    },
    "deliverables": [
        {
            "id": "paper",
            "name": "Paper",
            "description": "IEEE paper",
            "type": "document",
            "priority": "critical",
            "acceptanceCriteria": ["IEEE format"],
            "dependencies": [],
            "estimatedEffort": {
                "optimistic": 10,
                "mostLikely": 15,
                "pessimistic": 25,
                "confidence": "medium",
            },
            "milestones": [
                {
                    "id": "draft_done",
                    "name": "Draft done",
                    "description": "First draft complete",
                    "date": "2024-01-15T00:00:00.000Z",
                    "criteria": ["All sections"],
                    "dependencies": [],
                }
            ],
        },
        {
            "id": "slides",
            "name": "Slides",
            "description": "Conference slides",
            "type": "presentation",
            "priority": "low",
        },
    ],
}

RISK_RESPONSE = {
    "risks": [
        {
            "id": "scope",
            "category": "technical",
            "description": "Topic too broad for 5 pages",
            "probability": 0.5,
            "impact": 0.5,
            "riskScore": 0.99,
        },
        {
            "id": "review",
            "category": "schedule",
            "description": "Reviewers are slow",
            "probability": 0.2,
            "impact": 0.4,
        },
    ],
    "mitigationStrategies": [
        {"riskId": "scope", "strategy": "Narrow the topic", "cost": 0}
    ],
    "contingencyPlans": [],
    "overallRiskLevel": "critical",
}

EFFORT_RESPONSE = {
    "optimistic": 5,
    "mostLikely": 10,
    "pessimistic": 18,
    "confidence": "high",
    "assumptions": ["Sources available"],
    "riskFactors": ["Scope creep"],
}

INTENT_RESPONSE = {
    "primaryIntent": "create_document",
    "secondaryIntents": ["research"],
    "entities": [{"type": "technology", "value": "distributed caching", "confidence": 0.95}],
    "sentiment": "neutral",
    "urgency": "high",
    "complexity": "complex",
}

STATE_RESPONSE = {
    "phase": "planning",
    "currentTask": "Outline the paper",
    "newPendingActions": ["Draft outline", "Collect sources"],
    "completedActions": [],
    "workingMemoryUpdates": {"topic": "distributed caching"},
}


class ScriptedCompletion:
    """Completion fake answering by prompt marker.

    Values may be strings, JSON-serialisable objects or exceptions to raise.
    Prompts without a matching marker raise ``LookupError``.
    """

    RTF = "Role, Task, and Format (RTF)"
    INTENT = "extract intent, entities"
    ACTION_PLAN = "into a detailed action plan"
    SOW = "Statement of Work (SOW)"
    EFFORT = "PERT (Program Evaluation"
    RISK = "comprehensive risk analysis"
    STATE = "conversation state to determine the next phase"
    GREETING = "Generate a helpful initial response"
    REPLY = "Generate a helpful reply"

    def __init__(self, responses: Dict[str, Any]):
        self.responses = dict(responses)
        self.prompts: List[str] = []

    async def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        for marker, response in self.responses.items():
            if marker in prompt:
                if isinstance(response, BaseException):
                    raise response
                if isinstance(response, str):
                    return response
                return json.dumps(response)
        raise LookupError("No scripted response for prompt")

    def calls(self, marker: str) -> int:
        return sum(marker in prompt for prompt in self.prompts)


@pytest.fixture
def complete() -> ScriptedCompletion:
    return ScriptedCompletion(
        {
            ScriptedCompletion.RTF: RTF_RESPONSE,
            ScriptedCompletion.INTENT: INTENT_RESPONSE,
            ScriptedCompletion.ACTION_PLAN: ACTION_PLAN_RESPONSE,
            ScriptedCompletion.SOW: SOW_RESPONSE,
            ScriptedCompletion.EFFORT: EFFORT_RESPONSE,
            ScriptedCompletion.RISK: RISK_RESPONSE,
            ScriptedCompletion.STATE: STATE_RESPONSE,
            ScriptedCompletion.GREETING: "Happy to help with your paper. What venue?",
            ScriptedCompletion.REPLY: "Let's start with an outline.",
        }
    )


@pytest.fixture
def failing_complete() -> ScriptedCompletion:
    return ScriptedCompletion({"": RuntimeError("model unavailable")})
