"""Heuristic check that extracted text is the applicant's resume for their field."""
from typing import Dict, List

from loguru import logger

from ..core.models import ValidationResult
from .text_cleaner import round_half_up

EXTRACTION_FAILED_MARKER = "[PDF EXTRACTION FAILED]"

_HR_KEYWORDS = ["human", "resources", "hr", "recruitment", "talent", "employee", "personnel", "payroll", "training"]

SPECIALIZATION_KEYWORDS: Dict[str, List[str]] = {
    "data analytics": [
        "data", "analytics", "analysis", "python", "sql", "statistics",
        "tableau", "excel", "machine learning", "visualization",
    ],
    "international business": [
        "business", "international", "global", "trade", "export",
        "import", "market", "commerce", "cross-border",
    ],
    "marketing": [
        "marketing", "brand", "campaign", "advertising", "promotion",
        "digital", "social media", "content", "seo",
    ],
    "finance": [
        "finance", "financial", "accounting", "investment", "banking",
        "budget", "audit", "portfolio", "risk",
    ],
    "operations": [
        "operations", "supply", "logistics", "process", "management",
        "efficiency", "optimization", "lean",
    ],
    "human resources": _HR_KEYWORDS,
    "hr": _HR_KEYWORDS,
    "consulting": [
        "consulting", "consultant", "advisory", "strategy", "analysis",
        "project", "client", "solution",
    ],
    "it": [
        "technology", "software", "programming", "development", "computer",
        "system", "network", "database",
    ],
    "general management": [
        "management", "leadership", "strategy", "planning", "coordination",
        "team", "project",
    ],
}

STRUCTURE_KEYWORDS = ("education", "experience", "skills", "contact", "email", "phone")


def keywords_for(specialization: str) -> List[str]:
    """Keyword list for a specialization, defaulting to general management."""
    key = (specialization or "").strip().lower()
    return SPECIALIZATION_KEYWORDS.get(key, SPECIALIZATION_KEYWORDS["general management"])


def validate_resume_content(extracted_text: str, applicant_name: str, specialization: str) -> ValidationResult:
    """
    Score how plausibly ``extracted_text`` is the resume of ``applicant_name``
    for ``specialization``.

    Confidence and match score both start at 100. Penalties and bonuses
    accumulate unclamped; both are clamped to [0, 100] once at the end.

    Args:
        extracted_text: Text produced by the extractor
        applicant_name: Name from the application form
        specialization: Specialization from the application form

    Returns:
        ValidationResult with ordered issues
    """
    issues: List[str] = []
    confidence = 100
    match_score = 100
    text = extracted_text or ""
    text_lower = text.lower()

    if EXTRACTION_FAILED_MARKER in text:
        issues.append("PDF text extraction failed - manual review required")
        confidence = 10
        match_score = 0
    elif len(text) < 100:
        issues.append("Resume text is too short (possible extraction failure)")
        confidence -= 40
        match_score -= 30

    name_parts = [part for part in (applicant_name or "").lower().split() if len(part) > 2]
    name_matches = sum(1 for part in name_parts if part in text_lower)
    if name_parts and name_matches == 0 and len(text) > 100:
        issues.append(f'Applicant name "{applicant_name}" not found in resume content')
        confidence -= 30
        match_score -= 40
    elif name_matches > 0:
        match_score += 10

    keywords = keywords_for(specialization)
    keyword_matches = [kw for kw in keywords if kw in text_lower]
    ratio = len(keyword_matches) / len(keywords)
    if ratio == 0:
        issues.append(f"No relevant keywords found for {specialization}")
        confidence -= 25
        match_score -= 30
    elif ratio < 0.2:
        issues.append(
            f"Few relevant keywords found for {specialization} ({len(keyword_matches)}/{len(keywords)})"
        )
        confidence -= 15
        match_score -= 20
    else:
        match_score += round_half_up(ratio * 20)

    structure_matches = [kw for kw in STRUCTURE_KEYWORDS if kw in text_lower]
    if len(structure_matches) < 3:
        issues.append("Resume appears to be missing standard sections (education, experience, skills)")
        confidence -= 10
        match_score -= 10

    confidence = max(0, min(100, confidence))
    match_score = max(0, min(100, match_score))

    result = ValidationResult(
        is_valid=not issues and confidence > 50,
        issues=issues,
        confidence=confidence,
        match_score=match_score,
    )
    logger.debug(
        "Content validation for {}: valid={}, confidence={}, match={}",
        applicant_name, result.is_valid, confidence, match_score,
    )
    return result
