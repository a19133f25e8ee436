"""Wrapper around the OpenAI chat completions API that rephrases messages."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from openai import OpenAI

from .prompts import CategorySelector, resolve_instruction

logger = logging.getLogger("message_relay.llm")


# -----------------------------
# Types & defaults
# -----------------------------

@dataclass
class GenerationConfig:
    model: str = "gpt-4"
    max_tokens: int = 400
    temperature: float = 0.7
    timeout: Optional[float] = None


@dataclass(frozen=True)
class Rephrased:
    text: str


@dataclass(frozen=True)
class Fallback:
    original: str
    cause: BaseException


RephraseResult = Union[Rephrased, Fallback]


# -----------------------------
# Rephrase client
# -----------------------------

class RephraseClient:
    """Issues one completion call per message and never raises on API failure."""

    def __init__(self, client: Any, config: Optional[GenerationConfig] = None) -> None:
        """
        Parameters
        ----------
        client : Any
            An :class:`openai.OpenAI` instance, or anything exposing
            ``chat.completions.create`` with the same signature.
        config : GenerationConfig | None
            Model name and sampling settings.
        """
        self._client = client
        self.config = config or GenerationConfig()

    @property
    def model(self) -> str:
        return self.config.model

    def rephrase(self, original_message: str, selector: CategorySelector) -> str:
        """Return the rephrased text, or ``original_message`` unchanged on failure."""
        result = self.rephrase_result(original_message, selector)
        if isinstance(result, Rephrased):
            return result.text
        return result.original

    def rephrase_result(self, original_message: str, selector: CategorySelector) -> RephraseResult:
        messages = self._build_messages(resolve_instruction(selector), original_message)
        try:
            response = self._client.chat.completions.create(**self._request_kwargs(messages))
            text = self._extract_text(response)
        except Exception as exc:
            logger.warning("Error rephrasing message, returning original: %s", exc, exc_info=True)
            return Fallback(original=original_message, cause=exc)
        return Rephrased(text=text)

    # -------------------------
    # Internals
    # -------------------------
    def _build_messages(self, instruction: str, original_message: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": instruction},
            {"role": "user", "content": original_message},
        ]

    def _request_kwargs(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = dict(
            model=self.config.model,
            messages=messages,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        if self.config.timeout is not None:
            kwargs["timeout"] = self.config.timeout
        return kwargs

    @staticmethod
    def _extract_text(response: Any) -> str:
        choices = getattr(response, "choices", None)
        if not choices:
            raise ValueError("Completion response contained no choices")
        content = choices[0].message.content
        if content is None:
            raise ValueError("Completion response contained no text")
        return content.strip()


# -----------------------------
# Convenience factory
# -----------------------------

def create_from_config(cfg: Dict[str, Any]) -> RephraseClient:
    """Create a RephraseClient from a config dict (e.g., loaded YAML)."""
    llm_cfg = (cfg or {}).get("llm", {}) if isinstance(cfg, dict) else {}
    api_key = llm_cfg.get("api_key") or os.environ.get("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY not set. Please configure it in environment or .env")

    client_kwargs: Dict[str, Any] = {"api_key": api_key}
    if llm_cfg.get("base_url"):
        client_kwargs["base_url"] = llm_cfg["base_url"]

    timeout = llm_cfg.get("timeout")
    temperature = llm_cfg.get("temperature")
    gen = GenerationConfig(
        model=str(llm_cfg.get("model") or "gpt-4"),
        max_tokens=int(llm_cfg.get("max_tokens") or 400),
        temperature=float(temperature) if temperature is not None else 0.7,
        timeout=float(timeout) if timeout is not None else None,
    )
    return RephraseClient(OpenAI(**client_kwargs), gen)
