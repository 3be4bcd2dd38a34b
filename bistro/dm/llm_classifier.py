"""LLM-backed menu category classifier for utterances the keyword table misses."""
import json
import logging
from typing import Any, Dict, Iterable, Optional

from bistro.menu.menu_catalog import CATEGORIES

logger = logging.getLogger(__name__)


class LLMCategoryClassifier:
    """Classifies free text into one menu category using an LLM."""

    def __init__(self, llm, confidence_threshold: float = 0.75, categories: Iterable[str] = CATEGORIES):
        self.llm = llm
        self.confidence_threshold = confidence_threshold
        self.categories = tuple(categories)
        self._cache: Dict[str, Dict[str, Any]] = {}

    def classify(self, text: str) -> Dict[str, Any]:
        """
        Classifies the text into a menu category.

        Args:
            text: customer utterance (already normalized)

        Returns:
            {
                "category": str,      # one of the menu categories or "unknown"
                "confidence": float,  # 0-1
                "reasoning": str,
                "trace": Dict,        # debug info
            }
        """
        cache_key = text.strip().lower()
        if cache_key in self._cache:
            return self._cache[cache_key]

        try:
            raw = self.llm.call_llm(
                self._build_user_message(text),
                system_prompt=self._build_system_prompt(),
                temperature=0.0,
            )
            result = self._parse_llm_response(raw, text)
        except Exception as e:
            logger.error(f"LLM classification failed for '{text}': {e}")
            result = {
                "category": "unknown",
                "confidence": 0.0,
                "reasoning": f"LLM call failed: {e}",
                "trace": {"error": str(e), "fallback": True},
            }

        self._cache[cache_key] = result
        return result

    def accepted_category(self, text: str) -> Optional[str]:
        """Returns the category only when it is known and confident enough."""
        result = self.classify(text)
        category = result.get("category")
        if category in self.categories and result.get("confidence", 0.0) >= self.confidence_threshold:
            return category
        return None

    def _build_system_prompt(self) -> str:
        return f"""You are the order router of the AI Bistro restaurant voice assistant.
Classify what the customer wants to order into exactly one menu category.

Menu categories: {", ".join(self.categories)}
Use "unknown" when the customer is not asking for food or drink, or you cannot tell.

You must return valid JSON only, with no extra text."""

    def _build_user_message(self, text: str) -> str:
        return f"""Customer said: "{text}"

Respond with JSON:
{{
    "category": "...",
    "confidence": 0.0-1.0,
    "reasoning": "..."
}}"""

    def _parse_llm_response(self, content: str, text: str) -> Dict[str, Any]:
        try:
            parsed = json.loads(content)
            category = str(parsed.get("category", "unknown")).strip().lower()
            confidence = float(parsed.get("confidence", 0.0))
            return {
                "category": category if category in self.categories else "unknown",
                "confidence": confidence,
                "reasoning": parsed.get("reasoning", ""),
                "trace": {"source": "llm", "raw_content": content[:100]},
            }
        except (json.JSONDecodeError, AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Failed to parse LLM response for '{text}': {e}")
            return {
                "category": "unknown",
                "confidence": 0.0,
                "reasoning": "unparseable LLM response",
                "trace": {"error": str(e), "parse_failure": True},
            }

    def clear_cache(self):
        self._cache.clear()
