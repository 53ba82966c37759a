"""
Model-backed deck synthesis.

A single schema-constrained request asks the generative model for all three
decks. Each attempt is raced against a timeout; transient failures are
retried with exponential backoff, malformed replies are not. When every
attempt fails the synthesizer returns None and the caller falls back to
heuristic synthesis.
"""

import asyncio
import json
import re
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

from google import genai
from google.genai import types
from pydantic import ValidationError as PydanticValidationError

from decksmith.errors import ResponseFormatError, SynthesisError
from decksmith.models import DeckSet, ExtractionResult
from decksmith.synthesizers.base import Synthesizer
from decksmith.synthesizers.prompts import (
    DECK_KEYS,
    SYSTEM_INSTRUCTION,
    build_prompt,
    build_response_schema,
)
from decksmith.utils.logging import get_logger
from decksmith.utils.retry import format_exception, with_retry

logger = get_logger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT = 120.0  # seconds per attempt
DEFAULT_MAX_RETRIES = 2
DEFAULT_BASE_DELAY = 2.0  # seconds, doubled per retry
DEFAULT_THINKING_BUDGET = 4096
MAX_CONTEXT_CHARS = 800_000

# Markdown code fences around a JSON reply
FENCE_OPEN = re.compile(r"\A```[\w-]*[ \t]*\n?")
FENCE_CLOSE = re.compile(r"\n?[ \t]*```\Z")


class ModelClient(ABC):
    """Minimal interface to a generative model that can answer in JSON."""

    @abstractmethod
    async def generate_json(self, prompt: str, schema: Any, system_instruction: Optional[str] = None) -> str:
        """Send one request and return the raw response text."""


class GeminiClient(ModelClient):
    """Google Gemini through the google-genai SDK."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        thinking_budget: int = DEFAULT_THINKING_BUDGET,
    ):
        self.api_key = api_key
        self.model = model
        self.thinking_budget = thinking_budget
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate_json(self, prompt: str, schema: Any, system_instruction: Optional[str] = None) -> str:
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            response_mime_type="application/json",
            response_schema=schema,
            thinking_config=types.ThinkingConfig(thinking_budget=self.thinking_budget),
        )
        # The sync client runs in a worker thread; a timed-out call is left
        # to finish there and its result dropped
        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.model,
            contents=prompt,
            config=config,
        )
        return response.text or ""


def parse_deck_response(text: str) -> DeckSet:
    """
    Parse and check the model's JSON reply.

    Raises:
        SynthesisError: Empty reply (worth retrying)
        ResponseFormatError: Reply present but not the requested shape
    """
    if not text or not text.strip():
        raise SynthesisError("Model returned an empty response")

    body = FENCE_CLOSE.sub("", FENCE_OPEN.sub("", text.strip())).strip()

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise ResponseFormatError(f"Invalid JSON response from model: {e}") from e

    if not isinstance(payload, dict):
        raise ResponseFormatError(f"Model response is a {type(payload).__name__}, expected an object")

    missing = [key for key in DECK_KEYS if key not in payload or payload[key] is None]
    if missing:
        raise ResponseFormatError(f"Model response missing required deck fields: {', '.join(missing)}")

    not_lists = [key for key in DECK_KEYS if not isinstance(payload[key], list)]
    if not_lists:
        raise ResponseFormatError(f"Model response decks are not arrays: {', '.join(not_lists)}")

    try:
        return DeckSet.model_validate(payload)
    except PydanticValidationError as e:
        raise ResponseFormatError(f"Model response does not match the slide schema: {e}") from e


def is_transient(exc: BaseException) -> bool:
    return not isinstance(exc, ResponseFormatError)


class ModelSynthesizer(Synthesizer):
    """Synthesizer backed by a generative model."""

    kind = "model"

    def __init__(
        self,
        client: ModelClient,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_context_chars: int = MAX_CONTEXT_CHARS,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.client = client
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_context_chars = max_context_chars
        self._sleep = sleep
        self._schema = None

    @property
    def schema(self):
        if self._schema is None:
            self._schema = build_response_schema()
        return self._schema

    async def synthesize(self, result: ExtractionResult) -> Optional[DeckSet]:
        return await self.synthesize_with_model(result.full_text)

    async def synthesize_with_model(
        self,
        full_text: str,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ) -> Optional[DeckSet]:
        """
        Ask the model for all three decks.

        Args:
            full_text: Whole-document text; cut to the context limit
            timeout: Seconds allowed per attempt (defaults to the instance value)
            max_retries: Additional attempts after the first on transient failures

        Returns:
            DeckSet on success, None once attempts are exhausted or the reply
            was malformed
        """
        timeout = self.timeout if timeout is None else timeout
        max_retries = self.max_retries if max_retries is None else max_retries

        context = full_text[: self.max_context_chars]
        if len(full_text) > self.max_context_chars:
            logger.info(f"Source text cut from {len(full_text)} to {self.max_context_chars} characters")
        prompt = build_prompt(context)

        async def _attempt() -> DeckSet:
            try:
                text = await asyncio.wait_for(
                    self.client.generate_json(prompt, self.schema, SYSTEM_INSTRUCTION),
                    timeout=timeout,
                )
            except asyncio.TimeoutError as e:
                raise SynthesisError(f"Model request timed out after {timeout:g}s") from e
            except SynthesisError:
                raise
            except Exception as e:
                raise SynthesisError(f"Model request failed: {format_exception(e)}") from e
            return parse_deck_response(text)

        try:
            deckset = await with_retry(
                _attempt,
                max_attempts=max_retries + 1,
                is_retryable=is_transient,
                base_delay=self.base_delay,
                operation_name="deck synthesis",
                sleep=self._sleep,
            )
        except SynthesisError as e:
            logger.error(f"Model synthesis gave up: {format_exception(e)}")
            return None

        logger.info(
            "Model synthesis produced "
            f"{len(deckset.executive_deck)}/{len(deckset.creative_deck)}/{len(deckset.technical_deck)} slides"
        )
        return deckset
