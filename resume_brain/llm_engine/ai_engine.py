"""AI engine for resume analysis.

Extracts resume text, validates it against the application form, asks Grok
for a score and degrades to deterministic scoring whenever extraction, the
content check or the model lets us down. Every public function here returns
an ``AIAnalysisResult``; callers never need a try/except to get a score.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Optional

from loguru import logger

from ..core.models import AIAnalysisResult, CandidateInfo, ValidationResult
from ..resume_parser.resume_extractor import extract_text_from_file
from ..utils.content_validator import validate_resume_content
from ..utils.text_cleaner import preprocess_text_for_ai, round_half_up, validate_text_for_analysis
from .grok_client import GrokClient
from .prompts import SYSTEM_PROMPT, build_analysis_prompt
from .scoring import create_fallback_analysis, create_no_resume_analysis

CONFIDENCE_RESCALE_THRESHOLD = 70
CONFIDENCE_FALLBACK_THRESHOLD = 30

MISSING_FILE_MARKERS = ("File not found", "not found", "ENOENT")


@dataclass(frozen=True)
class ResponseCheck:
    """Outcome of checking a model response: a result, or why it was rejected."""

    result: Optional[AIAnalysisResult] = None
    reason: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.result is not None


def _failed(message: str) -> AIAnalysisResult:
    return AIAnalysisResult(
        score=0,
        strengths=[],
        weaknesses=[],
        prediction="",
        analysis_details="",
        success=False,
        error=message,
    )


def _non_empty_strings(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list) or not value:
        return None
    if any(not isinstance(item, str) or not item.strip() for item in value):
        return None
    return [item.strip() for item in value]


def validate_ai_response(data: Any) -> ResponseCheck:
    """Check a decoded model response field by field.

    No repair is attempted: any missing or malformed field rejects the
    whole response.
    """
    if not isinstance(data, dict):
        return ResponseCheck(reason="Invalid response format from AI service: expected a JSON object")

    score = data.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)) or not 1 <= score <= 100:
        return ResponseCheck(reason=f"Invalid response format from AI service: score {score!r} outside 1-100")

    strengths = _non_empty_strings(data.get("strengths"))
    if strengths is None:
        return ResponseCheck(reason="Invalid response format from AI service: strengths must be non-empty strings")

    weaknesses = _non_empty_strings(data.get("weaknesses"))
    if weaknesses is None:
        return ResponseCheck(reason="Invalid response format from AI service: weaknesses must be non-empty strings")

    prediction = data.get("prediction")
    details = data.get("analysisDetails")
    if not isinstance(prediction, str) or not prediction.strip():
        return ResponseCheck(reason="Invalid response format from AI service: prediction is required")
    if not isinstance(details, str) or not details.strip():
        return ResponseCheck(reason="Invalid response format from AI service: analysisDetails is required")

    return ResponseCheck(
        result=AIAnalysisResult(
            score=round_half_up(score),
            strengths=strengths,
            weaknesses=weaknesses,
            prediction=prediction.strip(),
            analysis_details=details.strip(),
            success=True,
        )
    )


def parse_analysis_response(raw_response: str) -> ResponseCheck:
    """Decode the model message content as JSON, then validate it."""
    try:
        data = json.loads(raw_response)
    except (TypeError, ValueError):
        logger.error("Failed to parse Grok response as JSON: {}", raw_response)
        return ResponseCheck(reason="Invalid JSON response from AI")
    return validate_ai_response(data)


def analyze_resume_with_grok(
    resume_text: str,
    candidate: CandidateInfo,
    client: Optional[GrokClient] = None,
) -> AIAnalysisResult:
    """Score a resume with Grok.

    Insufficient text fails fast without calling the API. Any client error,
    unparseable content or schema violation yields ``success=False`` with
    the reason in ``error``; callers are expected to fall back.

    Args:
        resume_text: Extracted resume text
        candidate: Application form data
        client: Optional client, a default ``GrokClient`` is built otherwise

    Returns:
        AIAnalysisResult
    """
    if not resume_text or not resume_text.strip():
        return _failed("Resume text is required for analysis")

    usable, reason = validate_text_for_analysis(resume_text)
    if not usable:
        logger.warning("Resume text for {} not suitable for AI analysis: {}", candidate.name, reason)
        return _failed(reason or "Resume text is not suitable for analysis")

    prompt = build_analysis_prompt(preprocess_text_for_ai(resume_text), candidate)

    try:
        client = client or GrokClient()
        logger.info("Sending resume analysis request to Grok for {}", candidate.name)
        raw_response = client.run(prompt, system_prompt=SYSTEM_PROMPT)
    except Exception as exc:
        logger.error("Resume analysis failed for {}: {}", candidate.name, exc)
        return _failed(str(exc) or "Unknown analysis error")

    check = parse_analysis_response(raw_response)
    if not check.is_valid:
        logger.warning("Rejected Grok response for {}: {}", candidate.name, check.reason)
        return _failed(check.reason or "Invalid response format from AI service")

    logger.info("Grok analysis succeeded for {}: score={}", candidate.name, check.result.score)
    return check.result


def _is_missing_file(error: Optional[str]) -> bool:
    return bool(error) and any(marker in error for marker in MISSING_FILE_MARKERS)


def _analyze(file_path: Optional[str], candidate: CandidateInfo, client: Optional[GrokClient]) -> AIAnalysisResult:
    extraction = extract_text_from_file(file_path)

    if not extraction.success or not extraction.text:
        logger.info("Text extraction failed for {}: {}", candidate.name, extraction.error)

        if _is_missing_file(extraction.error):
            logger.info("No resume file available for {}, using no-resume analysis", candidate.name)
            return create_no_resume_analysis(candidate).model_copy(update={
                "validation": ValidationResult(
                    is_valid=False, issues=["Resume file not available"], confidence=0, match_score=0
                ),
                "error": "Resume not provided - analysis based on application form data only",
            })

        return create_fallback_analysis(candidate).model_copy(update={
            "validation": ValidationResult(
                is_valid=False, issues=["Resume text extraction failed"], confidence=10, match_score=0
            ),
            "error": extraction.error or "Failed to extract text from resume file",
        })

    validation = validate_resume_content(extraction.text, candidate.name, candidate.specialization)
    logger.info(
        "Validation for {}: valid={}, confidence={}%, match={}%",
        candidate.name, validation.is_valid, validation.confidence, validation.match_score,
    )
    if validation.issues:
        logger.warning("Issues found for {}: {}", candidate.name, ", ".join(validation.issues))

    ai_result = analyze_resume_with_grok(extraction.text, candidate, client)

    if ai_result.success and validation.confidence < CONFIDENCE_RESCALE_THRESHOLD:
        adjusted = round_half_up(ai_result.score * validation.confidence / 100)
        logger.info("Adjusted AI score from {} to {} based on validation confidence", ai_result.score, adjusted)
        ai_result = ai_result.model_copy(update={"score": adjusted})

    if not ai_result.success or validation.confidence < CONFIDENCE_FALLBACK_THRESHOLD:
        cause = "AI processing issues" if not ai_result.success else "resume content issues"
        logger.warning("Using fallback analysis for {} due to {}", candidate.name, cause)
        fallback = create_fallback_analysis(candidate)
        return fallback.model_copy(update={
            "validation": validation,
            "analysis_details": (
                f"Fallback analysis used due to: {cause}. "
                f"{', '.join(validation.issues)}. {fallback.analysis_details}"
            ),
            "error": ai_result.error,
        })

    return ai_result.model_copy(update={"validation": validation})


def analyze_resume_from_file(
    file_path: Optional[str],
    candidate: CandidateInfo,
    client: Optional[GrokClient] = None,
) -> AIAnalysisResult:
    """Analyse a resume file end to end.

    Decision tree:
    - missing file -> no-resume analysis
    - extraction failed on an existing file -> fallback analysis
    - model succeeded -> model score, scaled down when validation
      confidence is below 70
    - model failed, or confidence below 30 -> fallback analysis

    Never raises; every returned result carries a ``validation`` object.
    """
    try:
        return _analyze(file_path, candidate, client)
    except Exception as exc:
        logger.exception("File-based resume analysis failed for {}", candidate.name)
        return create_fallback_analysis(candidate).model_copy(update={
            "validation": ValidationResult(
                is_valid=False, issues=["Analysis process failed"], confidence=10, match_score=0
            ),
            "error": str(exc) or "Unknown file analysis error",
        })
