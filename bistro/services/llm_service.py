# bistro/services/llm_service.py
"""
LLM Service - chat completions against an OpenAI-compatible endpoint
(LM Studio by default).
"""

from __future__ import annotations

import os
import re
from typing import Any, Dict, List, Optional

from openai import OpenAI


class LLMService:
    """LLM service"""

    def __init__(self, client: Optional[OpenAI] = None, model: Optional[str] = None):
        self.use_mock = os.getenv("USE_MOCK", "false").lower() == "true"
        self.model = model or os.getenv("LM_STUDIO_MODEL", "qwen2.5-14b-instruct-1m")
        self.client = client

        if self.client is None and not self.use_mock:
            self.client = OpenAI(
                base_url=os.getenv("LM_STUDIO_URL", "http://127.0.0.1:1234/v1"),
                api_key=os.getenv("LM_STUDIO_API_KEY", "lm-studio"),
            )

    def _strip_think(self, content: str) -> str:
        """Drops <think>...</think> reasoning blocks some local models emit."""
        if not content:
            return content

        content = content.strip()
        content = re.sub(r"<think>.*?</think>", "", content, flags=re.DOTALL).strip()

        if "<think>" in content:
            parts = content.split("<think>")
            content = parts[0].strip()

        return content

    def call_llm(
        self,
        user_message: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 300,
    ) -> str:
        """
        Sends one user message (plus optional system prompt) and returns the
        model's text reply.
        """
        if self.use_mock:
            return '{"category": "unknown", "confidence": 0.0, "reasoning": "mock mode"}'

        messages: List[Dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_message})

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as e:
            raise RuntimeError(f"LLM call failed: {e}") from e

        content = (response.choices[0].message.content or "").strip()
        return self._strip_think(content)
