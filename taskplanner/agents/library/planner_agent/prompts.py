"""Prompt templates for the planning pipeline.

Templates use LangChain f-string formatting, so literal JSON braces are
doubled.
"""

from langchain_core.prompts import PromptTemplate

RTF_PARSE_PROMPT = PromptTemplate.from_template(
    """
Analyze this natural language input and extract the Role, Task, and Format (RTF) structure.

Input: "{input}"
{context_block}

Extract and structure the following information in JSON format:

{{
  "role": "The role or persona the user wants the AI to assume (e.g., 'academic advisor', 'technical writer', 'project manager')",
  "task": {{
    "type": "paper|presentation|project|code|analysis|general",
    "intent": "Primary goal or objective",
    "description": "Detailed description of what needs to be done",
    "scope": "single-action|multi-step|iterative|collaborative",
    "priority": "low|medium|high|urgent",
    "requirements": ["List of specific requirements"],
    "constraints": ["Any limitations or constraints"],
    "dependencies": ["Prerequisites or dependencies"],
    "expectedOutcome": "What the user expects as a result"
  }},
  "format": {{
    "outputType": "document|presentation|code|analysis|conversation|mixed",
    "structure": "linear|hierarchical|iterative|collaborative",
    "style": "formal|casual|technical|academic|creative",
    "deliverables": [
      {{
        "name": "Deliverable name",
        "type": "Type of deliverable",
        "description": "What this deliverable contains",
        "format": "Specific format requirements",
        "priority": "must-have|should-have|could-have"
      }}
    ],
    "timeline": {{
      "estimatedDuration": "Rough time estimate",
      "milestones": [
        {{
          "name": "Milestone name",
          "description": "What needs to be achieved",
          "estimatedTime": "Time estimate for this milestone",
          "dependencies": ["Dependencies for this milestone"]
        }}
      ],
      "urgency": "immediate|hours|days|weeks|months"
    }}
  }},
  "confidence": 0.0,
  "metadata": {{
    "language": "detected language",
    "complexity": "simple|moderate|complex|very-complex",
    "domain": "detected domain or field",
    "keywords": ["key terms extracted"]
  }}
}}

Set "confidence" to a number between 0 and 1.
If information is not explicitly provided, make reasonable inferences based on context and common patterns.
Respond with JSON only.
"""
)

INTENT_PROMPT = PromptTemplate.from_template(
    """
Analyze this natural language input and extract intent, entities, and other relevant information.

Input: "{input}"
{context_block}

Extract the following information in JSON format:

{{
  "primaryIntent": "Main goal or action the user wants (e.g., 'create_document', 'get_help', 'edit_content')",
  "secondaryIntents": ["Additional or supporting intents"],
  "entities": [
    {{
      "type": "person|project|document|deadline|technology|concept|location",
      "value": "Extracted entity value",
      "confidence": 0.0,
      "context": "Surrounding context for this entity"
    }}
  ],
  "sentiment": "positive|neutral|negative|frustrated|excited",
  "urgency": "low|medium|high|urgent",
  "complexity": "simple|moderate|complex|very-complex"
}}

Respond with JSON only.
"""
)

ACTION_PLAN_PROMPT = PromptTemplate.from_template(
    """
Convert this RTF structure into a detailed action plan with steps, resources, and risk assessment.

RTF Structure:
{rtf}

Generate a comprehensive action plan in JSON format:

{{
  "steps": [
    {{
      "id": "unique_step_id",
      "name": "Step name",
      "description": "Detailed description of what to do",
      "type": "research|analysis|creation|review|communication|technical",
      "estimatedTime": "Time estimate, e.g. '2 hours' or '1 day'",
      "prerequisites": ["ids of previous steps required"],
      "deliverable": "What this step produces",
      "tools": ["Tools or resources needed"],
      "validationCriteria": ["How to verify completion"]
    }}
  ],
  "resources": [
    {{
      "type": "human|tool|data|infrastructure|external",
      "name": "Resource name",
      "description": "What this resource provides",
      "availability": "available|limited|unavailable|unknown",
      "criticality": "essential|important|helpful|optional"
    }}
  ],
  "riskAssessment": [
    {{
      "type": "technical|timeline|resource|quality|external",
      "description": "Description of the risk",
      "probability": "low|medium|high",
      "impact": "low|medium|high|critical",
      "mitigation": "How to reduce or handle this risk"
    }}
  ]
}}

Prerequisites must only reference ids of other steps in this plan and must not form cycles.
Make the action plan practical and executable. Respond with JSON only.
"""
)

SOW_PROMPT = PromptTemplate.from_template(
    """
Generate a comprehensive Statement of Work (SOW) document based on this RTF structure and options.

RTF Structure:
{rtf}

Options:
{options}

Create a detailed SOW in JSON format with the following structure:

{{
  "id": "unique_sow_id",
  "title": "Descriptive project title",
  "description": "Comprehensive project description",
  "scope": {{
    "overview": "High-level project overview",
    "objectives": ["Primary project objectives"],
    "inclusions": ["What is included in scope"],
    "exclusions": ["What is explicitly excluded"],
    "boundaries": ["Project boundaries and limitations"]
  }},
  "deliverables": [
    {{
      "id": "deliverable_id",
      "name": "Deliverable name",
      "description": "Detailed description",
      "type": "document|presentation|software|analysis|model|other",
      "priority": "critical|high|medium|low",
      "acceptanceCriteria": ["Criteria for acceptance"],
      "dependencies": ["Dependencies for this deliverable"],
      "estimatedEffort": {{
        "optimistic": 10,
        "mostLikely": 15,
        "pessimistic": 25,
        "confidence": "high|medium|low"
      }},
      "milestones": [
        {{
          "id": "milestone_id",
          "name": "Milestone name",
          "description": "What needs to be achieved",
          "date": "2024-01-15T00:00:00",
          "criteria": ["Completion criteria"],
          "dependencies": ["Prerequisites"]
        }}
      ]
    }}
  ]
}}

Effort values are hours. Consider the complexity indicated in the RTF structure.
Respond with JSON only.
"""
)

EFFORT_PROMPT = PromptTemplate.from_template(
    """
Generate effort estimates for this task using PERT (Program Evaluation and Review Technique) analysis.

Task: {task}
Complexity: {complexity}
Context: {context}

Consider task scope, technical requirements, quality standards, review and
iteration cycles, documentation and testing.

Provide estimates in hours in JSON format:

{{
  "optimistic": 5,
  "mostLikely": 10,
  "pessimistic": 18,
  "confidence": "high|medium|low",
  "assumptions": ["Key assumptions made"],
  "riskFactors": ["Factors that could increase effort"]
}}

Respond with JSON only.
"""
)

RISK_PROMPT = PromptTemplate.from_template(
    """
Perform a comprehensive risk analysis for this project.

RTF Structure:
{rtf}

Timeline:
{timeline}

Resources:
{resources}

Identify and assess risks in JSON format:

{{
  "risks": [
    {{
      "id": "risk_id",
      "category": "technical|schedule|resource|external|quality|business",
      "description": "Risk description",
      "probability": 0.3,
      "impact": 0.7,
      "triggers": ["What could trigger this risk"],
      "indicators": ["Early warning signs"]
    }}
  ],
  "mitigationStrategies": [
    {{
      "riskId": "risk_id",
      "strategy": "How to reduce probability or impact",
      "actions": ["Specific actions to take"],
      "responsibleParty": "Who is responsible",
      "timeline": "When to implement",
      "cost": 1000
    }}
  ],
  "contingencyPlans": [
    {{
      "trigger": "What triggers this plan",
      "description": "What to do if risk occurs",
      "actions": ["Specific response actions"],
      "resources": ["Additional resources needed"],
      "impact": "Expected impact on project"
    }}
  ]
}}

Probability and impact are on a 0-1 scale.
Respond with JSON only.
"""
)

STATE_ANALYSIS_PROMPT = PromptTemplate.from_template(
    """
Analyze this user message and current conversation state to determine the next phase and actions.

Current State:
- Phase: {phase}
- Current Task: {current_task}
- Pending Actions: {pending_actions}

User Message: "{message}"
Context Type: {context_type}

Determine:
1. Next conversation phase (initiation/analysis/planning/execution/review/completion)
2. Current task description
3. New pending actions to add
4. Actions to mark as completed

Respond in JSON format:
{{
  "phase": "...",
  "currentTask": "...",
  "newPendingActions": ["..."],
  "completedActions": ["..."],
  "workingMemoryUpdates": {{}}
}}
"""
)

GREETING_PROMPT = PromptTemplate.from_template(
    """
You are an AI assistant specialized in helping with {context_type} tasks.

Context Type: {context_type}
User's First Message: {first_message}

Generate a helpful initial response that:
1. Acknowledges the user's request
2. Asks clarifying questions if needed
3. Outlines how you can help
4. Sets expectations for the conversation

Keep the response friendly, professional, and focused on the specific context type.
"""
)

REPLY_PROMPT = PromptTemplate.from_template(
    """
You are an AI assistant helping with {context_type} tasks.

Current Conversation State:
- Phase: {phase}
- Current Task: {current_task}
- Pending Actions: {pending_actions}
- Completed Actions: {completed_actions}

Recent Conversation:
{recent_history}

Generate a helpful reply to the user's latest message that provides actionable
guidance and moves the conversation toward task completion.
"""
)
