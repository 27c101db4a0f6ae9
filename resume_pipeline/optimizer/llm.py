"""LLM client for the optimisation engine.

``OptimizerLLM`` knows the two requests the engine makes, a rewrite and a
score, and turns each into one JSON completion through LiteLLM. Failures are
classified by LiteLLM's exception types: rejected requests and timeouts fail
at once, rate limits back off longer than other transient errors, and a
reply that does not fit its model is never retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from typing import Any, TypeVar

from litellm import acompletion
from litellm.exceptions import (
    AuthenticationError,
    BadRequestError,
    NotFoundError,
    RateLimitError,
    Timeout,
)
from pydantic import BaseModel, ValidationError

from resume_pipeline.optimizer.config import OptimizerConfig, get_optimizer_config
from resume_pipeline.optimizer.models import RewriteOutput, ScoreOutput
from resume_pipeline.optimizer.prompts import (
    REWRITE_SYSTEM_PROMPT,
    SCORE_SYSTEM_PROMPT,
    build_rewrite_prompt,
    build_score_prompt,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# LiteLLM loads `.env` into the process environment in DEV mode.
os.environ.setdefault("LITELLM_MODE", "PRODUCTION")

# Requests the provider refused outright; retrying cannot help
_REJECTED = (AuthenticationError, BadRequestError, NotFoundError)

_RETRY_BASE_SECONDS = 2
_RATE_LIMIT_BASE_SECONDS = 8

_FENCED_BLOCK = re.compile(r"```[\w-]*\s*\n(.*?)```", re.DOTALL)
_DECODER = json.JSONDecoder()


class LLMError(Exception):
    """Exception raised when LLM operations fail."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


def resolve_model_name(provider: str, model: str, base_url: str | None) -> str:
    """Return the provider-qualified model name LiteLLM routes on.

    Already-qualified names pass through. A custom base URL is an
    OpenAI-compatible endpoint unless the provider is Anthropic.
    """
    if "/" in model:
        return model
    if provider == "anthropic":
        return f"anthropic/{model}"
    if base_url:
        return f"openai/{model}"
    if provider == "openai":
        return model
    return f"{provider}/{model}"


def extract_json(content: str) -> str:
    """Cut the first JSON object out of a model reply.

    Code fences and any prose around the object are dropped. Replies with
    no decodable object are returned stripped, for validation to reject.
    """
    content = content.strip()
    fenced = _FENCED_BLOCK.search(content)
    if fenced:
        content = fenced.group(1).strip()

    start = content.find("{")
    while start != -1:
        try:
            _, end = _DECODER.raw_decode(content, start)
        except json.JSONDecodeError:
            start = content.find("{", start + 1)
            continue
        return content[start:end]
    return content


def _message_content(response: Any) -> str:
    message = response.choices[0].message
    content = getattr(message, "content", None)
    if content is not None:
        return str(content)

    # Some providers return structured output as tool call arguments
    for tool_call in getattr(message, "tool_calls", None) or []:
        arguments = getattr(getattr(tool_call, "function", None), "arguments", None)
        if isinstance(arguments, str) and arguments.strip():
            return arguments
    raise LLMError("LLM returned no content to parse.")


class OptimizerLLM:
    """LLM client used to rewrite and score resumes."""

    def __init__(self, config: OptimizerConfig | None = None):
        """Initialize the LLM client.

        Args:
            config: Optional OptimizerConfig. Uses global config if not provided.
        """
        self.config = config or get_optimizer_config()
        self.model = resolve_model_name(
            self.config.llm_provider, self.config.llm_model, self.config.llm_base_url
        )

    async def rewrite(self, text: str) -> RewriteOutput:
        """Ask for an ATS-friendly rewrite of resume text."""
        return await self.complete_json(
            build_rewrite_prompt(text, self.config.rewrite_max_chars),
            RewriteOutput,
            system_prompt=REWRITE_SYSTEM_PROMPT,
            max_tokens=self.config.rewrite_max_tokens,
            purpose="rewrite",
        )

    async def score(self, text: str) -> ScoreOutput:
        """Ask for ATS, keyword and formatting scores plus issues."""
        return await self.complete_json(
            build_score_prompt(text, self.config.score_max_chars),
            ScoreOutput,
            system_prompt=SCORE_SYSTEM_PROMPT,
            max_tokens=self.config.score_max_tokens,
            purpose="score",
        )

    async def complete_json(
        self,
        prompt: str,
        output_model: type[T],
        *,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        purpose: str = "completion",
    ) -> T:
        """Run one completion and validate its JSON reply against ``output_model``.

        Args:
            prompt: The user prompt.
            output_model: Pydantic model the reply must match.
            system_prompt: Optional system prompt.
            max_tokens: Optional completion token limit.
            purpose: Label used in log lines.

        Returns:
            The validated reply.

        Raises:
            LLMError: If the request is rejected, times out, keeps failing
                after ``llm_max_retries`` retries, or the reply does not fit
                ``output_model``.
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        request = self._request(messages, output_model, max_tokens)

        attempt = 0
        while True:
            try:
                response = await acompletion(**request)
                break
            except Timeout as e:
                raise LLMError(
                    f"LLM {purpose} request timed out "
                    f"(timeout={self.config.llm_timeout}s). Increase "
                    "`OPTIMIZER_LLM_TIMEOUT` or use a faster model.",
                    e,
                ) from e
            except _REJECTED as e:
                raise LLMError(f"LLM {purpose} request rejected: {e}", e) from e
            except Exception as e:
                if attempt >= self.config.llm_max_retries:
                    raise LLMError(
                        f"LLM {purpose} call failed after retries: {e}", e
                    ) from e
                attempt += 1
                base = (
                    _RATE_LIMIT_BASE_SECONDS
                    if isinstance(e, RateLimitError)
                    else _RETRY_BASE_SECONDS
                )
                delay = base * attempt
                logger.warning(
                    "LLM %s call failed (attempt %s), retrying in %ss: %s",
                    purpose,
                    attempt,
                    delay,
                    e,
                )
                await asyncio.sleep(delay)

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(
                "LLM %s used %s tokens", purpose, getattr(usage, "total_tokens", "?")
            )
        return self._validate(_message_content(response), output_model)

    def _request(
        self,
        messages: list[dict[str, str]],
        output_model: type[BaseModel],
        max_tokens: int | None,
    ) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "timeout": self.config.llm_timeout,
            "response_format": output_model,
        }
        if max_tokens is not None:
            request["max_tokens"] = max_tokens
        if self.config.llm_api_key:
            request["api_key"] = self.config.llm_api_key
        if self.config.llm_base_url:
            request["api_base"] = self.config.llm_base_url
        return request

    @staticmethod
    def _validate(content: str, output_model: type[T]) -> T:
        try:
            return output_model.model_validate_json(extract_json(content))
        except ValidationError as e:
            raise LLMError(
                f"Failed to parse LLM response - validation error: {e}", e
            ) from e
