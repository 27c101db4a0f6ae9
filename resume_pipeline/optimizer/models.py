"""Data models for the optimisation engine.

Contains Pydantic models for the structured LLM outputs:
- RewriteOutput: The rewritten resume text
- ScoreOutput: ATS, keyword and formatting scores plus issues

and the engine result handed back to the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, field_validator

from resume_pipeline.resumes.models import ResumeIssue

# Scores used when the scoring model omits a value
DEFAULT_ATS_SCORE = 70
DEFAULT_KEYWORDS_SCORE = 7
DEFAULT_FORMATTING_SCORE = 7


def _clamp(value: object, low: int, high: int) -> object:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return max(low, min(high, int(round(value))))
    return value


class IssueOutput(BaseModel):
    """A problem found in the resume."""

    type: str = Field(default="general", description="Issue category")
    message: str = Field(..., description="What to fix")
    severity: str = Field(default="medium", description="high, medium or low")

    @field_validator("severity", mode="before")
    @classmethod
    def normalize_severity(cls, v: object) -> str:
        value = str(v or "medium").strip().lower()
        return value if value in {"high", "medium", "low"} else "medium"


class RewriteOutput(BaseModel):
    """Structured output of the rewrite prompt."""

    model_config = ConfigDict(populate_by_name=True)

    improved_text: str | None = Field(
        default=None,
        alias="improvedText",
        description="The complete improved resume text",
    )


class ScoreOutput(BaseModel):
    """Structured output of the scoring prompt."""

    model_config = ConfigDict(populate_by_name=True)

    ats_score: int = Field(
        default=DEFAULT_ATS_SCORE, alias="atsScore", description="ATS score (0-100)"
    )
    keywords_score: int = Field(
        default=DEFAULT_KEYWORDS_SCORE,
        alias="keywordsScore",
        description="Keyword score (0-10)",
    )
    formatting_score: int = Field(
        default=DEFAULT_FORMATTING_SCORE,
        alias="formattingScore",
        description="Formatting score (0-10)",
    )
    issues: list[IssueOutput] = Field(
        default_factory=list, description="Specific problems to fix"
    )

    @field_validator("ats_score", mode="before")
    @classmethod
    def clamp_ats_score(cls, v: object) -> object:
        return DEFAULT_ATS_SCORE if v is None else _clamp(v, 0, 100)

    @field_validator("keywords_score", mode="before")
    @classmethod
    def clamp_keywords_score(cls, v: object) -> object:
        return DEFAULT_KEYWORDS_SCORE if v is None else _clamp(v, 0, 10)

    @field_validator("formatting_score", mode="before")
    @classmethod
    def clamp_formatting_score(cls, v: object) -> object:
        return DEFAULT_FORMATTING_SCORE if v is None else _clamp(v, 0, 10)


@dataclass(frozen=True)
class OptimizationResult:
    """Improved text and score breakdown for one resume."""

    improved_text: str
    ats_score: int
    keywords_score: int
    formatting_score: int
    issues: list[ResumeIssue] = field(default_factory=list)

    @classmethod
    def from_outputs(
        cls, original_text: str, rewrite: RewriteOutput, scores: ScoreOutput
    ) -> OptimizationResult:
        """Combine the two LLM outputs, falling back to the original text."""
        improved = (rewrite.improved_text or "").strip() or original_text
        return cls(
            improved_text=improved,
            ats_score=scores.ats_score,
            keywords_score=scores.keywords_score,
            formatting_score=scores.formatting_score,
            issues=[
                ResumeIssue(
                    type=issue.type, message=issue.message, severity=issue.severity
                )
                for issue in scores.issues
            ],
        )
