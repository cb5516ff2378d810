"""
Studio Ops - Claude client

Thin async wrapper around the Anthropic SDK:
- lazy client from ANTHROPIC_API_KEY
- JSON responses (markdown fences stripped)
- API errors mapped to readable messages
- retry with exponential backoff (2s, 4s, ...) except on configuration errors
"""

import asyncio
import json
import logging
import os
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

import anthropic

logger = logging.getLogger("llm")

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MAX_TOKENS = 8192
DEFAULT_MAX_RETRIES = 3


class LLMError(Exception):
    """Any failure talking to the model or reading its answer"""
    retryable = True


class ConfigurationError(LLMError):
    """Missing or rejected API key"""
    retryable = False


class InputTooShortError(LLMError):
    """Input rejected before calling the model"""
    retryable = False


class LLMResponseError(LLMError):
    """Model answered but the answer is unusable (no text, bad JSON)"""


def strip_code_fences(text: str) -> str:
    """'```json\\n{...}\\n```' -> '{...}'"""
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_json_response(text: str) -> Any:
    try:
        return json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        logger.error(f"Model response is not JSON: {text[:500]}")
        raise LLMResponseError(f"Failed to parse response as JSON: {e}") from e


class ClaudeClient:
    """Async Claude client, one per process"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None
    ):
        self.api_key = api_key if api_key is not None else os.environ.get("ANTHROPIC_API_KEY", "")
        self.model = model or os.environ.get("CLAUDE_MODEL", DEFAULT_MODEL)
        self.max_tokens = max_tokens or int(os.environ.get("LLM_MAX_TOKENS", DEFAULT_MAX_TOKENS))
        self._client: Optional[anthropic.AsyncAnthropic] = None

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        """Lazy-load Anthropic client."""
        if not self.api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY environment variable is not set")
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def complete(
        self,
        system: str,
        content: Union[str, List[Dict[str, Any]]],
        max_tokens: Optional[int] = None
    ) -> Tuple[str, Dict[str, int]]:
        """
        One user turn -> (response text, usage).

        content is a string or a list of content blocks (text / image).
        """
        client = self.client

        try:
            message = await client.messages.create(
                model=self.model,
                max_tokens=max_tokens or self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APIStatusError as e:
            logger.error(f"Claude API error {e.status_code}: {e.message}")
            if e.status_code == 401:
                raise ConfigurationError("Invalid API key. Please check your ANTHROPIC_API_KEY.") from e
            if e.status_code == 429:
                raise LLMError("Rate limit exceeded. Please try again in a moment.") from e
            raise LLMError(f"API error: {e.message}") from e
        except anthropic.APIError as e:
            logger.error(f"Claude API error: {e}")
            raise LLMError(f"API error: {e.message}") from e

        text_blocks = [b for b in message.content if getattr(b, "type", None) == "text"]
        if not text_blocks:
            raise LLMResponseError("No text response received from Claude")

        usage = {
            "input_tokens": message.usage.input_tokens,
            "output_tokens": message.usage.output_tokens,
        }
        return text_blocks[0].text.strip(), usage

    async def complete_json(
        self,
        system: str,
        content: Union[str, List[Dict[str, Any]]],
        max_tokens: Optional[int] = None
    ) -> Tuple[Any, Dict[str, int]]:
        text, usage = await self.complete(system, content, max_tokens=max_tokens)
        return parse_json_response(text), usage


async def with_retry(
    call: Callable[[], Awaitable[Any]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = 2.0,
    label: str = "llm"
) -> Any:
    """
    Run call() up to max_retries times.

    Waits base_delay ** attempt seconds between attempts (2s, 4s with the
    default). Non-retryable errors are raised immediately.
    """
    last_error = ""

    for attempt in range(1, max_retries + 1):
        try:
            return await call()
        except LLMError as e:
            if not e.retryable:
                raise
            last_error = str(e)
            logger.warning(f"[{label}] attempt {attempt}/{max_retries} failed: {last_error}")

        if attempt < max_retries:
            await asyncio.sleep(base_delay ** attempt)

    raise LLMError(f"Failed after {max_retries} attempts. Last error: {last_error}")


_default_client: Optional[ClaudeClient] = None


def get_llm_client() -> ClaudeClient:
    """Process-wide client; reads env on first use"""
    global _default_client
    if _default_client is None:
        _default_client = ClaudeClient()
    return _default_client
