import os
import sys
from typing import Any, Dict, List, Optional

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from resume_brain.core.models import CandidateInfo  # noqa: E402


FINANCE_RESUME = (
    "Jane Doe\n"
    "Email: jane.doe@example.com | Phone: +91 98765 43210\n\n"
    "Education\n"
    "Master of Business Administration (Finance), Delhi University, 2023-2025. "
    "Bachelor of Commerce, 2019-2022.\n\n"
    "Experience\n"
    "Finance Intern, ABC Capital: built financial models for investment banking pitches, "
    "supported audit of quarterly budget reports and portfolio risk analysis.\n\n"
    "Skills\n"
    "Excel, financial modelling, valuation, accounting, SQL, PowerPoint.\n\n"
    "Projects\n"
    "Equity research project on the banking sector covering credit risk and portfolio returns."
)


VALID_RESPONSE = (
    '{"score": 82,'
    ' "strengths": ["Strong finance coursework", "Investment banking internship", "Excel modelling",'
    ' "Audit exposure", "Clear communication"],'
    ' "weaknesses": ["Limited leadership roles", "Few certifications", "Short internship"],'
    ' "prediction": "Financial Analyst",'
    ' "analysisDetails": "Solid finance profile with relevant internship experience."}'
)


class FakeStore:
    """In-memory stand-in for the ``core.database`` functions."""

    def __init__(self, applications: Optional[Dict[str, Dict[str, Any]]] = None, events: Optional[list] = None):
        self.applications = applications or {}
        self.statuses: Dict[str, str] = {}
        self.saved: List[Dict[str, Any]] = []
        self.events = events if events is not None else []
        self.fail_save = False
        self.fail_status = False
        self.fail_read = False

    def update_analysis_status(self, application_id, status):
        if self.fail_status:
            raise RuntimeError("status update failed")
        self.statuses[application_id] = status
        self.events.append(("status", application_id, status))

    def save_analysis_result(self, application_id, score, strengths, weaknesses, prediction):
        self.events.append(("save", application_id))
        if self.fail_save:
            raise RuntimeError("database unavailable")
        self.saved.append({
            "application_id": application_id,
            "score": score,
            "strengths": strengths,
            "weaknesses": weaknesses,
            "prediction": prediction,
        })
        self.statuses[application_id] = "completed"

    def get_analysis_status(self, application_id):
        if self.fail_read:
            raise RuntimeError("database unavailable")
        return self.statuses.get(application_id)

    def get_application(self, application_id):
        return self.applications.get(application_id)

    def list_pending_applications(self, with_resume):
        return [
            record for record in self.applications.values()
            if bool(record.get("resume_url")) == with_resume
            and record.get("ai_analysis_status") in (None, "pending")
        ]


class ManualScheduler:
    """Scheduler that only ticks when the test calls ``fire``."""

    interval = 0

    def __init__(self):
        self.callback = None
        self.running = False
        self.stopped_with = None

    def start(self, callback):
        self.callback = callback
        self.running = True

    def stop(self, wait=False, timeout=None):
        self.running = False
        self.stopped_with = wait

    def fire(self):
        return self.callback()


class FakeGrokClient:
    def __init__(self, response: Optional[str] = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def run(self, prompt, system_prompt=None):
        self.calls.append({"prompt": prompt, "system_prompt": system_prompt})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def make_candidate():
    def _make(**overrides):
        data = {
            "name": "Jane Doe",
            "college": "Delhi University",
            "specialization": "Finance",
            "cgpa": 8.0,
            "skills": ("Excel", "SQL", "Valuation"),
            "experience": "Finance intern at ABC Capital working on valuation models.",
        }
        data.update(overrides)
        return CandidateInfo(**data)

    return _make


@pytest.fixture
def candidate(make_candidate):
    return make_candidate()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def scheduler():
    return ManualScheduler()
