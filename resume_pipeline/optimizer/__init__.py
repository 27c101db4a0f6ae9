"""Resume optimisation engine.

Public API:
- OptimizationEngine: Protocol consumed by the pipeline
- LLMOptimizationEngine: LiteLLM-backed implementation
- OptimizationResult: Improved text plus score breakdown
- EngineError: Raised when an optimisation run fails
- OptimizerConfig: Settings for the engine (OPTIMIZER_ prefix)
"""

from resume_pipeline.optimizer.config import OptimizerConfig
from resume_pipeline.optimizer.engine import (
    EngineError,
    LLMOptimizationEngine,
    OptimizationEngine,
)
from resume_pipeline.optimizer.models import OptimizationResult

__all__ = [
    "EngineError",
    "LLMOptimizationEngine",
    "OptimizationEngine",
    "OptimizationResult",
    "OptimizerConfig",
]
