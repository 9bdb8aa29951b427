"""
RTF Parser

Turns free-text requests into RTF structures using the completion
capability, with local fallbacks whenever the model misbehaves.
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from taskplanner.core import CompletionFn
from taskplanner.utils.json_utils import extract_json_object, to_prompt_json

from .prompts import INTENT_PROMPT, RTF_PARSE_PROMPT
from .rtf import IntentAnalysis, RTFStructure, describe_context

logger = logging.getLogger(__name__)


def _context_block(context: Dict[str, Any]) -> str:
    return f"Context: {to_prompt_json(context)}" if context else ""


class RTFParser:
    """Parses natural language into RTF structures and intent analyses."""

    def __init__(self, complete: CompletionFn):
        self.complete = complete
        self._rtf_cache: Dict[str, RTFStructure] = {}
        self._intent_cache: Dict[str, IntentAnalysis] = {}
        self._hits = 0
        self._misses = 0

    async def parse_rtf(
        self, input_text: str, context: Optional[Mapping[str, Any]] = None
    ) -> RTFStructure:
        """Parse ``input_text`` into an RTF structure.

        Never raises for model failures; returns ``RTFStructure.fallback``
        instead. Only successful parses are cached.
        """
        if not input_text or not input_text.strip():
            raise ValueError("Input text must be non-empty.")

        ctx = describe_context(context)
        cache_key = self.generate_cache_key(input_text, ctx)
        cached = self._rtf_cache.get(cache_key)
        if cached is not None:
            self._hits += 1
            return cached
        self._misses += 1

        prompt = RTF_PARSE_PROMPT.format(
            input=input_text, context_block=_context_block(ctx)
        )
        try:
            payload = extract_json_object(await self.complete(prompt))
            rtf = RTFStructure.from_payload(payload, input_text)
        except (ValueError, ValidationError) as e:
            logger.warning("Failed to parse RTF structure, using fallback: %s", e)
            return RTFStructure.fallback(input_text)
        except Exception as e:
            logger.warning("RTF completion call failed, using fallback: %s", e)
            return RTFStructure.fallback(input_text)

        self._rtf_cache[cache_key] = rtf
        return rtf

    async def parse_intent(
        self, input_text: str, context: Optional[Mapping[str, Any]] = None
    ) -> IntentAnalysis:
        """Extract intent, entities, sentiment and urgency from a message."""
        cache_key = f"intent:{input_text}"
        cached = self._intent_cache.get(cache_key)
        if cached is not None:
            self._hits += 1
            return cached
        self._misses += 1

        prompt = INTENT_PROMPT.format(
            input=input_text, context_block=_context_block(describe_context(context))
        )
        try:
            payload = extract_json_object(await self.complete(prompt))
            intent = IntentAnalysis.model_validate(payload)
        except Exception as e:
            logger.warning("Failed to parse intent, using fallback: %s", e)
            return IntentAnalysis.fallback()

        self._intent_cache[cache_key] = intent
        return intent

    @staticmethod
    def generate_cache_key(input_text: str, context: Optional[Mapping[str, Any]]) -> str:
        context_str = (
            json.dumps(context, sort_keys=True, default=str) if context else ""
        )
        return f"rtf:{input_text}:{context_str}"

    def clear_cache(self) -> None:
        self._intent_cache.clear()
        self._rtf_cache.clear()

    def get_stats(self) -> Dict[str, Any]:
        lookups = self._hits + self._misses
        return {
            "intent_cache_size": len(self._intent_cache),
            "rtf_cache_size": len(self._rtf_cache),
            "cache_hits": self._hits,
            "cache_misses": self._misses,
            "cache_hit_rate": self._hits / lookups if lookups else 0.0,
        }
