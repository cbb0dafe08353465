"""LLM engine package for resume analysis.

Provides Grok-powered resume scoring with deterministic fallbacks.
"""

from .scoring import create_fallback_analysis, create_no_resume_analysis
from .ai_engine import analyze_resume_from_file, analyze_resume_with_grok

__all__ = [
    "analyze_resume_from_file",
    "analyze_resume_with_grok",
    "create_fallback_analysis",
    "create_no_resume_analysis",
]
