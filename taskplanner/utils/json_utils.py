"""Helpers for turning language-model output into JSON objects."""

import json
import re
from typing import Any, Dict

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def extract_json_object(text: str) -> Dict[str, Any]:
    """Return the JSON object contained in ``text``.

    Accepts bare JSON, JSON inside Markdown code fences, or a JSON object
    embedded in surrounding prose. Raises ``ValueError`` when no object can
    be recovered.
    """
    if not isinstance(text, str) or not text.strip():
        raise ValueError("Empty model response.")

    text = text.strip()
    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1).strip()

    if text.startswith("{") and text.endswith("}"):
        data = json.loads(text)
    else:
        i, j = text.find("{"), text.rfind("}")
        if i < 0 or j <= i:
            raise ValueError("Model response did not contain a JSON object.")
        data = json.loads(text[i : j + 1])

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}.")
    return data


def to_prompt_json(data: Any) -> str:
    """Stable, indented JSON used when embedding structures in prompts."""
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)
