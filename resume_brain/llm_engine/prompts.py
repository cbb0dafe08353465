"""Prompt builders for Grok-based candidate analysis."""

from __future__ import annotations

from ..core.models import CandidateInfo

COMPANY_NAME = "YugaYatra Retail (OPC) Private Limited"

MISSING_RESUME_TEXT = "Resume content not available or insufficient for detailed analysis."

SYSTEM_PROMPT = (
    "You are a professional MBA recruitment consultant conducting candidate evaluations. "
    "Use only professional, respectful language. For missing information, use terms like "
    '"N/A", "Not Available", or "Not Provided". Never use informal, casual, or derogatory terms. '
    "Respond only with valid JSON format as requested."
)


def build_analysis_prompt(resume_text: str, candidate: CandidateInfo) -> str:
    """Build the prompt asking Grok to evaluate an internship candidate.

    The model must:
    - Use professional register only, with "N/A" / "Not Available" for
      anything missing.
    - Return only a JSON object with ``score`` (1-100), five ``strengths``,
      three ``weaknesses``, a ``prediction`` and ``analysisDetails``.
    - Score against a six tier rubric and six evaluation focus areas.

    Resume text shorter than 50 characters is replaced with a neutral
    "not available" note so the model never sees an empty section.
    """
    resume_content = (resume_text or "").strip()
    if len(resume_content) < 50:
        resume_content = MISSING_RESUME_TEXT

    skills = ", ".join(candidate.skills)

    return (
        "You are an expert MBA recruitment consultant analyzing a candidate for an MBA internship "
        f"position at {COMPANY_NAME}. Please provide a comprehensive and professional assessment.\n\n"

        "CANDIDATE INFORMATION:\n"
        f"- Name: {candidate.name}\n"
        f"- Specialization: {candidate.specialization}\n"
        f"- College: {candidate.college}\n"
        f"- CGPA: {candidate.cgpa:g}/10.0\n"
        f"- Key Skills: {skills}\n"
        f"- Experience Summary: {candidate.experience}\n\n"

        "RESUME CONTENT:\n"
        f"{resume_content}\n\n"

        "IMPORTANT INSTRUCTIONS:\n"
        "1. Use only professional and respectful language in your analysis\n"
        '2. For missing resume content, use terms like "N/A", "Not Available", or "Not Provided" '
        "- never informal or derogatory terms\n"
        "3. Focus on available information when resume content is limited\n"
        "4. Provide constructive feedback that helps the candidate improve\n"
        "5. Base predictions on the candidate's stated specialization and qualifications\n\n"

        "Please provide your analysis in the following JSON format (respond ONLY with valid JSON):\n\n"
        "{\n"
        '  "score": <number between 1-100>,\n'
        '  "strengths": [\n'
        '    "<specific professional strength 1>",\n'
        '    "<specific professional strength 2>",\n'
        '    "<specific professional strength 3>",\n'
        '    "<specific professional strength 4>",\n'
        '    "<specific professional strength 5>"\n'
        "  ],\n"
        '  "weaknesses": [\n'
        '    "<constructive area for improvement 1>",\n'
        '    "<constructive area for improvement 2>",\n'
        '    "<constructive area for improvement 3>"\n'
        "  ],\n"
        '  "prediction": "<predicted best-fit role based on available information>",\n'
        '  "analysisDetails": "<professional 2-3 sentence analysis of candidate\'s potential '
        'based on available information>"\n'
        "}\n\n"

        "SCORING CRITERIA (1-100):\n"
        "- 90-100: Exceptional candidate, top 5% - outstanding achievements, perfect fit\n"
        "- 80-89: Excellent candidate, top 15% - strong qualifications, very good fit\n"
        "- 70-79: Good candidate, top 30% - solid qualifications, good potential\n"
        "- 60-69: Average candidate, meets basic requirements\n"
        "- 50-59: Developing candidate with growth potential\n"
        "- Below 50: Requires significant development, may not be suitable for current role\n\n"

        "EVALUATION FOCUS:\n"
        "1. Academic performance and educational background\n"
        "2. Relevant experience and achievements (if resume available)\n"
        "3. Skills alignment with retail/business roles\n"
        "4. Leadership and project management experience\n"
        "5. Communication and analytical abilities\n"
        "6. Career progression potential and growth mindset\n\n"

        "When resume content is unavailable or insufficient, focus on the candidate information "
        'provided and use professional language such as "Resume not available for detailed '
        'assessment" rather than informal terms.'
    )
