"""
Neuropul Awakening: GeminiService, the remote text generator

Thin async client over the Gemini SDK.  The resolvers treat its output as
opaque text, so this module only guarantees three things:

- a non-empty ``str`` on success (markdown code fences stripped),
- ``EmptyResponse`` when the model answers with blocked or blank text,
- ``TransportError`` for everything else (missing key, SDK / HTTP errors,
  over-long prompts).

Deadlines are enforced by the caller with ``asyncio.wait_for``; cancelling
the coroutine aborts the in-flight SDK request.

Model fallback chain (within one attempt):
    GEMINI_MODEL_PRIMARY -> GEMINI_MODEL_FALLBACK
"""

from __future__ import annotations

import re
from typing import Protocol

import google.generativeai as genai
import structlog
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from awakening.config import get_settings
from awakening.exceptions import EmptyResponse, ResolutionError, TransportError

logger = structlog.get_logger(__name__)

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


class TextGenerator(Protocol):
    """Anything that can turn a prompt pair into free-form text."""

    async def generate(self, prompt: str, system_prompt: str) -> str: ...


class GeminiService:
    """``TextGenerator`` backed by Google Gemini with a model fallback chain."""

    def __init__(self) -> None:
        settings = get_settings()
        self._api_key = settings.GEMINI_API_KEY
        self._model_chain: list[str] = settings.gemini_model_chain
        self._prompt_max_chars = settings.PROMPT_MAX_CHARS

        if self._api_key:
            genai.configure(api_key=self._api_key)

        # Archetype answers are short and harmless; never let the safety
        # filter turn a classification into an empty response.
        self._safety_settings = {
            HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
        }

        self._generation_config = genai.GenerationConfig(
            temperature=settings.GENERATION_TEMPERATURE,
            max_output_tokens=settings.GENERATION_MAX_OUTPUT_TOKENS,
        )

        logger.info(
            "gemini_service_initialised",
            model_chain=self._model_chain,
            configured=bool(self._api_key),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def generate(self, prompt: str, system_prompt: str) -> str:
        """Return generator text for ``prompt``, trying each model in turn.

        Raises
        ------
        TransportError
            Key missing, prompt invalid, or every model errored.
        EmptyResponse
            The last model tried answered with no usable text.
        """
        if not self._api_key:
            raise TransportError("Gemini API key not configured")

        prompt = (prompt or "").strip()
        if not prompt:
            raise TransportError("Empty prompt provided")
        if len(prompt) > self._prompt_max_chars:
            raise TransportError(
                f"Prompt too long ({len(prompt)} > {self._prompt_max_chars} characters)"
            )

        last_error: ResolutionError | None = None
        for model_name in self._model_chain:
            try:
                return await self._call_model(model_name, prompt, system_prompt)
            except EmptyResponse as exc:
                last_error = exc
            except Exception as exc:
                last_error = TransportError(f"{model_name}: {exc}")
            logger.warning(
                "gemini_model_fallback",
                failed_model=model_name,
                error=str(last_error),
            )

        assert last_error is not None
        raise last_error

    async def _call_model(self, model_name: str, prompt: str, system_prompt: str) -> str:
        model = genai.GenerativeModel(model_name, system_instruction=system_prompt)
        logger.debug("gemini_call", model=model_name, prompt_chars=len(prompt))

        response = await model.generate_content_async(
            prompt,
            safety_settings=self._safety_settings,
            generation_config=self._generation_config,
        )

        if not response.candidates:
            raise EmptyResponse(
                f"Gemini returned no candidates for model {model_name}. "
                f"Prompt feedback: {response.prompt_feedback}"
            )
        try:
            text = response.text
        except ValueError as exc:
            # Raised by the SDK when the candidate has no text parts.
            raise EmptyResponse(f"Gemini returned no text for model {model_name}: {exc}") from exc

        text = self._strip_code_fence((text or "").strip())
        if not text:
            raise EmptyResponse(f"Gemini returned empty text for model {model_name}")
        return text

    @staticmethod
    def _strip_code_fence(text: str) -> str:
        match = _CODE_FENCE.match(text)
        if match:
            return match.group(1).strip()
        return text
