"""Typed records passed between the extraction, scoring and queue stages."""
from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class AnalysisStatus(str, Enum):
    """Value of the ``ai_analysis_status`` column on an application."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


def parse_skills(raw: Any) -> List[str]:
    """Decode a stored skills value.

    Applications store skills as a JSON array, but older rows hold a plain
    comma separated string.
    """
    if not raw:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(s) for s in raw]
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        return [s.strip() for s in str(raw).split(",") if s.strip()]
    if isinstance(decoded, list):
        return [str(s) for s in decoded]
    return [s.strip() for s in str(raw).split(",") if s.strip()]


class CandidateInfo(BaseModel):
    """Structured application form data for one candidate."""

    model_config = ConfigDict(frozen=True)

    name: str
    college: str = ""
    specialization: str
    cgpa: float = Field(0.0, ge=0, le=10)
    skills: Tuple[str, ...] = ()
    experience: str = ""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CandidateInfo":
        """Rebuild candidate info from a stored application row."""
        try:
            cgpa = float(record.get("cgpa") or 0)
        except (TypeError, ValueError):
            cgpa = 0.0
        return cls(
            name=record.get("name") or "",
            college=record.get("college") or "",
            specialization=record.get("specialization") or "",
            cgpa=cgpa,
            skills=tuple(parse_skills(record.get("skills"))),
            experience=record.get("experience") or "No experience provided.",
        )


class AnalysisJob(BaseModel):
    """A unit of work for the analysis queue. Never persisted on its own."""

    model_config = ConfigDict(frozen=True)

    application_id: str
    file_path: Optional[str] = None
    candidate_info: CandidateInfo


class ExtractedText(BaseModel):
    text: str = ""
    success: bool
    error: Optional[str] = None
    word_count: Optional[int] = None


class ValidationResult(BaseModel):
    """Outcome of checking resume text against the applicant's own data."""

    is_valid: bool
    issues: List[str] = Field(default_factory=list)
    confidence: int = Field(ge=0, le=100)
    match_score: int = Field(ge=0, le=100)


class AIAnalysisResult(BaseModel):
    """Score and narrative written back to the application record."""

    score: int
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    prediction: str = ""
    analysis_details: str = ""
    success: bool
    error: Optional[str] = None
    validation: Optional[ValidationResult] = None

    def storage_fields(self) -> Dict[str, Any]:
        """Columns persisted for this result; lists are JSON encoded."""
        return {
            "score": self.score,
            "strengths": json.dumps(self.strengths, ensure_ascii=False),
            "weaknesses": json.dumps(self.weaknesses, ensure_ascii=False),
            "prediction": self.prediction,
        }
