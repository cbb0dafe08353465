"""Deterministic scoring used when the model cannot score a resume."""

from __future__ import annotations

from typing import List

from ..core.models import AIAnalysisResult, CandidateInfo

FALLBACK_SCORE_RANGE = (30, 85)
NO_RESUME_SCORE_RANGE = (25, 70)


def _clamp(score: int, bounds: tuple) -> int:
    low, high = bounds
    return min(max(score, low), high)


def create_fallback_analysis(candidate: CandidateInfo) -> AIAnalysisResult:
    """Score a candidate from form data when a resume exists but could not be analysed.

    Base score 55 plus non-overlapping CGPA, skill count and experience
    length bonuses, clamped to [30, 85].
    """
    score = 55

    if candidate.cgpa >= 8.5:
        score += 20
    elif candidate.cgpa >= 7.5:
        score += 15
    elif candidate.cgpa >= 6.5:
        score += 10
    elif candidate.cgpa >= 6.0:
        score += 5

    skill_count = len(candidate.skills)
    if skill_count >= 8:
        score += 10
    elif skill_count >= 5:
        score += 7
    elif skill_count >= 3:
        score += 3

    experience_length = len(candidate.experience)
    if experience_length > 200:
        score += 8
    elif experience_length > 100:
        score += 5
    elif experience_length > 50:
        score += 2

    score = _clamp(score, FALLBACK_SCORE_RANGE)

    strengths: List[str] = []
    if candidate.cgpa >= 8.0:
        strengths.append("Excellent academic performance demonstrating strong analytical capabilities")
    elif candidate.cgpa >= 7.0:
        strengths.append("Good academic foundation with solid performance record")
    elif candidate.cgpa >= 6.0:
        strengths.append("Adequate academic background meeting program requirements")

    if skill_count >= 6:
        strengths.append("Well-rounded skill portfolio applicable to business environments")
    elif skill_count >= 3:
        strengths.append("Focused skill set relevant to chosen specialization")

    strengths.append(f"Specialized knowledge in {candidate.specialization} field")

    if experience_length > 150:
        strengths.append("Comprehensive experience summary indicating professional engagement")

    if candidate.college and candidate.college.strip():
        strengths.append(f"Educational background from {candidate.college}")

    while len(strengths) < 3:
        strengths.append("Demonstrates interest in professional development through program application")

    weaknesses: List[str] = []
    if 0 < candidate.cgpa < 7.0:
        weaknesses.append("Academic performance indicates opportunity for stronger analytical development")

    if skill_count < 4:
        weaknesses.append(
            "Limited skill portfolio mentioned - expanding technical and soft skills would be beneficial"
        )

    if experience_length < 100:
        weaknesses.append("Experience summary could be more detailed to better showcase professional background")

    weaknesses.append(
        "Detailed resume analysis not available - comprehensive evaluation requires additional documentation"
    )

    while len(weaknesses) < 3:
        weaknesses.append("Portfolio development recommended to strengthen application profile")

    return AIAnalysisResult(
        score=score,
        strengths=strengths[:5],
        weaknesses=weaknesses[:3],
        prediction=f"{candidate.specialization} Associate/Analyst role based on educational specialization",
        analysis_details=(
            f"Candidate demonstrates academic foundation in {candidate.specialization} with CGPA of "
            f"{candidate.cgpa:g}/10.0. Assessment based on available application information. "
            "Comprehensive evaluation would benefit from detailed resume review and additional documentation."
        ),
        success=True,
    )


def create_no_resume_analysis(candidate: CandidateInfo) -> AIAnalysisResult:
    """Conservative score for an application that never had a resume.

    Base score 45 with smaller bonuses than the fallback, clamped to [25, 70].
    The three weaknesses are always the same statements about the missing resume.
    """
    score = 45

    if candidate.cgpa >= 8.5:
        score += 15
    elif candidate.cgpa >= 7.5:
        score += 12
    elif candidate.cgpa >= 6.5:
        score += 8
    elif candidate.cgpa >= 6.0:
        score += 4

    skill_count = len(candidate.skills)
    if skill_count >= 6:
        score += 5
    elif skill_count >= 3:
        score += 3

    experience_length = len(candidate.experience)
    if experience_length > 150:
        score += 3
    elif experience_length > 75:
        score += 2

    score = _clamp(score, NO_RESUME_SCORE_RANGE)

    strengths: List[str] = []
    if candidate.cgpa >= 7.5:
        strengths.append("Strong academic performance as indicated in application")
    elif candidate.cgpa >= 6.5:
        strengths.append("Satisfactory academic performance meeting program requirements")

    if skill_count >= 4:
        strengths.append("Multiple skills listed showing diverse interests")

    strengths.append(f"Educational focus in {candidate.specialization} aligns with program objectives")

    if experience_length > 100:
        strengths.append("Provided experience summary in application form")

    strengths.append("Completed application process demonstrating program interest")

    while len(strengths) < 3:
        strengths.append("Academic specialization provides a foundation for structured skill development")

    weaknesses = [
        "Resume not provided - detailed evaluation of professional background not available",
        "Assessment limited to application form information only",
        "Professional experience and achievements require documentation for comprehensive review",
    ]

    return AIAnalysisResult(
        score=score,
        strengths=strengths[:5],
        weaknesses=weaknesses,
        prediction=f"Entry-level {candidate.specialization} role based on academic specialization",
        analysis_details=(
            "Assessment based solely on application form data as resume not provided. "
            f"Candidate shows interest in {candidate.specialization} field with CGPA of "
            f"{candidate.cgpa:g}/10.0. Complete evaluation requires resume submission and "
            "additional documentation."
        ),
        success=True,
    )
