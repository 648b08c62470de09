"""Text generation client for the workspace AI features.

Wraps the OpenAI chat completions API behind a prompt-in/text-out contract,
with a client-side rate limit that spaces successive calls at least two
seconds apart by delaying (never rejecting) early calls.
"""
from __future__ import annotations

import logging
import os
import time
import typing as t

from openai import OpenAI

from prompts import load_prompt

logger = logging.getLogger(__name__)

# Model - configurable via environment variable
OPENAI_MODEL = os.getenv("INTEGRAL_AI_MODEL", "gpt-3.5-turbo")

MIN_API_CALL_INTERVAL = 2.0  # seconds between calls
DEFAULT_MAX_TOKENS = 500
GENERATION_ERROR = "Failed to generate AI response. Please try again later."
STREAM_ERROR = "Failed to stream AI response. Please try again later."

DEFAULT_SYSTEM_PROMPT = load_prompt("default_system_prompt").strip()


def get_openai_client() -> OpenAI:
    """Get OpenAI client with API key."""
    return OpenAI(api_key=os.getenv("OPENAI_API_KEY"))


class RateLimiter:
    """Enforces a minimum spacing between calls by sleeping."""

    def __init__(
        self,
        min_interval: float = MIN_API_CALL_INTERVAL,
        clock: t.Callable[[], float] = time.monotonic,
        sleep: t.Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: t.Optional[float] = None

    def wait(self) -> float:
        """Block until the next call is allowed; returns the delay applied."""
        delay = 0.0
        if self._last_call is not None:
            elapsed = self._clock() - self._last_call
            if elapsed < self.min_interval:
                delay = self.min_interval - elapsed
                logger.debug(f"Rate limiting AI call for {delay:.2f}s")
                self._sleep(delay)
        self._last_call = self._clock()
        return delay


class TextGenerator:
    """Prompt-in/text-out access to the hosted language model."""

    def __init__(
        self,
        client: t.Optional[t.Any] = None,
        model: str = OPENAI_MODEL,
        rate_limiter: t.Optional[RateLimiter] = None,
    ) -> None:
        self._client = client
        self.model = model
        self.rate_limiter = rate_limiter or RateLimiter()

    @property
    def client(self) -> t.Any:
        if self._client is None:
            self._client = get_openai_client()
        return self._client

    def _messages(self, prompt: str, system_prompt: t.Optional[str]) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": system_prompt or DEFAULT_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    def generate(
        self,
        prompt: str,
        system_prompt: t.Optional[str] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> str:
        """Generate a complete response.

        Raises:
            RuntimeError: If the model call fails for any reason.
        """
        self.rate_limiter.wait()
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(prompt, system_prompt),
                max_tokens=max_tokens,
            )
            return completion.choices[0].message.content or ""
        except Exception as e:
            logger.error(f"Error generating AI response: {e}")
            raise RuntimeError(GENERATION_ERROR) from e

    def stream_generate(
        self,
        prompt: str,
        system_prompt: t.Optional[str] = None,
    ) -> t.Iterator[str]:
        """Yield text deltas as they arrive.

        The iterator ends on completion; a failure at any point raises
        RuntimeError from the iterator.
        """
        self.rate_limiter.wait()
        try:
            stream = self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(prompt, system_prompt),
                stream=True,
            )
            for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except Exception as e:
            logger.error(f"Error streaming AI response: {e}")
            raise RuntimeError(STREAM_ERROR) from e


class AIStream:
    """Accumulates a streamed response together with its loading/error state."""

    def __init__(self, generator: TextGenerator) -> None:
        self.generator = generator
        self.is_loading = False
        self.content = ""
        self.error: t.Optional[str] = None

    def run(
        self,
        prompt: str,
        system_prompt: t.Optional[str] = None,
        on_chunk: t.Optional[t.Callable[[str], None]] = None,
    ) -> bool:
        """Stream a response into ``content``; returns False if it failed."""
        self.is_loading = True
        self.content = ""
        self.error = None
        try:
            for delta in self.generator.stream_generate(prompt, system_prompt):
                self.content += delta
                if on_chunk is not None:
                    on_chunk(delta)
            return True
        except RuntimeError as e:
            self.error = str(e)
            return False
        finally:
            self.is_loading = False

    def reset(self) -> None:
        self.content = ""
        self.error = None
