"""Optimisation engine: rewrite and score a resume with an LLM."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from resume_pipeline.optimizer.config import OptimizerConfig, get_optimizer_config
from resume_pipeline.optimizer.llm import LLMError, OptimizerLLM
from resume_pipeline.optimizer.models import OptimizationResult

logger = logging.getLogger(__name__)


class EngineError(Exception):
    """Exception raised when an optimisation run fails."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class OptimizationEngine(Protocol):
    """Turns resume text into improved text and a score breakdown."""

    async def optimize(self, text: str) -> OptimizationResult: ...


class LLMOptimizationEngine:
    """Optimisation engine backed by two concurrent LLM calls.

    One call rewrites the resume, the other scores it. The whole run is
    bounded by ``engine_timeout`` so a hung provider cannot hold a request
    or a worker slot indefinitely.
    """

    def __init__(
        self,
        config: OptimizerConfig | None = None,
        llm: OptimizerLLM | None = None,
    ):
        """Initialize the engine.

        Args:
            config: Optional OptimizerConfig. Uses global config if not provided.
            llm: Optional LLM client (built from ``config`` if not provided).
        """
        self.config = config or get_optimizer_config()
        self.llm = llm or OptimizerLLM(config=self.config)

    async def optimize(self, text: str) -> OptimizationResult:
        """Rewrite and score resume text.

        Args:
            text: Extracted resume text.

        Returns:
            The optimisation result.

        Raises:
            EngineError: On API, quota, parsing or timeout failure.
        """
        if not text.strip():
            raise EngineError("Cannot optimize an empty resume")

        rewrite_task = asyncio.create_task(self.llm.rewrite(text))
        score_task = asyncio.create_task(self.llm.score(text))
        try:
            rewrite, scores = await asyncio.wait_for(
                asyncio.gather(rewrite_task, score_task),
                timeout=self.config.engine_timeout,
            )
        except TimeoutError as e:
            raise EngineError(
                f"Optimization timed out after {self.config.engine_timeout}s", e
            ) from e
        except LLMError as e:
            raise EngineError(f"Optimization failed: {e}", e) from e
        except Exception as e:
            raise EngineError(f"Unexpected optimization error: {e}", e) from e
        finally:
            for task in (rewrite_task, score_task):
                if not task.done():
                    task.cancel()

        result = OptimizationResult.from_outputs(text, rewrite, scores)
        logger.debug(
            "Optimization finished: ats=%s keywords=%s formatting=%s issues=%s",
            result.ats_score,
            result.keywords_score,
            result.formatting_score,
            len(result.issues),
        )
        return result
