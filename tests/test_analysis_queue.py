import json
import threading
import time

import pytest

from resume_brain.core.models import AIAnalysisResult, AnalysisJob
from resume_brain.llm_engine.scoring import create_fallback_analysis, create_no_resume_analysis
from resume_brain.worker.analysis_queue import (
    AnalysisQueue,
    ApplicationNotFoundError,
    IntervalScheduler,
    QueueState,
)

from conftest import FakeStore


def _result(score=77, success=True):
    return AIAnalysisResult(
        score=score,
        strengths=["Clear goals", "Strong CGPA", "Relevant project"],
        weaknesses=["Short internship", "Few certifications", "Limited leadership"],
        prediction="Financial Analyst",
        analysis_details="Good fit.",
        success=success,
    )


class RecordingAnalyzer:
    def __init__(self, events=None, result=None, error=None):
        self.calls = []
        self.events = events if events is not None else []
        self.result = result or _result()
        self.error = error

    def __call__(self, file_path, candidate):
        self.calls.append((file_path, candidate.name))
        self.events.append(("analyze", file_path))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def analyzer():
    return RecordingAnalyzer()


@pytest.fixture
def queue(store, analyzer, scheduler):
    return AnalysisQueue(store=store, analyzer=analyzer, scheduler=scheduler, upload_path="/data/uploads")


class TestAddJob:
    def test_marks_application_processing(self, queue, store, candidate):
        queue.queue_resume_analysis("app-1", "/uploads/jane.pdf", candidate)
        assert store.statuses["app-1"] == "processing"
        assert queue.get_queue_status()["queue_length"] == 1

    def test_status_failure_still_queues(self, queue, store, candidate):
        store.fail_status = True
        queue.queue_resume_analysis("app-1", None, candidate)
        assert queue.get_queue_status()["queue_length"] == 1


class TestProcessing:
    def test_tick_on_empty_queue(self, queue):
        assert queue.tick() is False

    def test_jobs_run_in_order_one_at_a_time(self, candidate, make_candidate, scheduler):
        events = []
        store = FakeStore(events=events)
        analyzer = RecordingAnalyzer(events=events)
        queue = AnalysisQueue(store=store, analyzer=analyzer, scheduler=scheduler, upload_path="/data/uploads")
        queue.start()

        queue.queue_resume_analysis("app-1", "/uploads/a.pdf", candidate)
        queue.queue_resume_analysis("app-2", "/uploads/b.pdf", make_candidate(name="Ravi Kumar"))

        assert scheduler.fire() is True
        assert scheduler.fire() is True
        assert scheduler.fire() is False

        assert [name for _, name in analyzer.calls] == ["Jane Doe", "Ravi Kumar"]
        assert [entry["application_id"] for entry in store.saved] == ["app-1", "app-2"]
        work = [e for e in events if e[0] in ("analyze", "save")]
        assert work == [
            ("analyze", "/data/uploads/a.pdf"),
            ("save", "app-1"),
            ("analyze", "/data/uploads/b.pdf"),
            ("save", "app-2"),
        ]
        assert store.statuses == {"app-1": "completed", "app-2": "completed"}

    def test_tick_is_not_reentrant(self, store, scheduler, candidate):
        observed = {}

        def analyzer(file_path, info):
            observed["nested_tick"] = queue.tick()
            observed["status"] = queue.get_queue_status()
            observed["state"] = queue.state
            return _result()

        queue = AnalysisQueue(store=store, analyzer=analyzer, scheduler=scheduler)
        queue.queue_resume_analysis("app-1", None, candidate)
        queue.queue_resume_analysis("app-2", None, candidate)

        assert queue.tick() is True
        assert observed["nested_tick"] is False
        assert observed["status"]["processing"] is True
        assert observed["state"] is QueueState.PROCESSING
        assert queue.state is QueueState.IDLE
        assert queue.get_queue_status()["queue_length"] == 1

    def test_path_resolved_against_upload_directory(self, queue, analyzer, candidate):
        queue.queue_resume_analysis("app-1", "/uploads/nested/jane.pdf", candidate)
        queue.queue_resume_analysis("app-2", None, candidate)
        queue.drain()
        assert [path for path, _ in analyzer.calls] == ["/data/uploads/jane.pdf", None]

    def test_stored_lists_are_json(self, queue, store, candidate):
        queue.queue_resume_analysis("app-1", "/uploads/jane.pdf", candidate)
        queue.tick()
        saved = store.saved[0]
        assert saved["score"] == 77
        assert json.loads(saved["strengths"]) == ["Clear goals", "Strong CGPA", "Relevant project"]
        assert saved["prediction"] == "Financial Analyst"

    def test_unsuccessful_result_replaced_by_fallback(self, store, scheduler, candidate):
        analyzer = RecordingAnalyzer(result=_result(score=0, success=False))
        queue = AnalysisQueue(store=store, analyzer=analyzer, scheduler=scheduler)
        queue.queue_resume_analysis("app-1", "/uploads/jane.pdf", candidate)
        queue.tick()
        assert store.saved[0]["score"] == create_fallback_analysis(candidate).score

    @pytest.mark.parametrize("file_path, substitute", [
        ("/uploads/jane.pdf", create_fallback_analysis),
        (None, create_no_resume_analysis),
    ])
    def test_analyzer_exception_uses_substitute(self, store, scheduler, candidate, file_path, substitute):
        analyzer = RecordingAnalyzer(error=RuntimeError("boom"))
        queue = AnalysisQueue(store=store, analyzer=analyzer, scheduler=scheduler)
        queue.queue_resume_analysis("app-1", file_path, candidate)

        assert queue.tick() is True
        expected = substitute(candidate)
        assert store.saved[0]["score"] == expected.score
        assert json.loads(store.saved[0]["weaknesses"]) == expected.weaknesses
        assert store.statuses["app-1"] == "completed"

    def test_write_back_failure_marks_failed_without_retry(self, queue, store, candidate):
        store.fail_save = True
        queue.queue_resume_analysis("app-1", "/uploads/a.pdf", candidate)
        queue.queue_resume_analysis("app-2", "/uploads/b.pdf", candidate)

        assert queue.drain() == 2
        assert store.statuses == {"app-1": "failed", "app-2": "failed"}
        assert [e for e in store.events if e[0] == "save"] == [("save", "app-1"), ("save", "app-2")]


class TestRetrigger:
    def test_rebuilds_job_from_stored_application(self, store, scheduler, analyzer):
        store.applications["42"] = {
            "id": "42",
            "name": "Jane Doe",
            "college": "Delhi University",
            "specialization": "Finance",
            "cgpa": "8.2",
            "skills": '["Excel", "SQL"]',
            "experience": "",
            "resume_url": "/uploads/jane.pdf",
            "ai_analysis_status": "failed",
        }
        queue = AnalysisQueue(store=store, analyzer=analyzer, scheduler=scheduler)

        job = queue.retrigger_analysis_for_application("42")

        assert job.file_path == "/uploads/jane.pdf"
        assert job.candidate_info.cgpa == 8.2
        assert job.candidate_info.skills == ("Excel", "SQL")
        assert job.candidate_info.experience == "No experience provided."
        assert store.statuses["42"] == "processing"

    def test_application_without_resume(self, store, scheduler, analyzer):
        store.applications["7"] = {
            "id": "7", "name": "Ravi Kumar", "specialization": "HR",
            "cgpa": None, "skills": "Recruiting, Payroll", "resume_url": None,
        }
        queue = AnalysisQueue(store=store, analyzer=analyzer, scheduler=scheduler)

        job = queue.retrigger_analysis_for_application("7")

        assert job.file_path is None
        assert job.candidate_info.skills == ("Recruiting", "Payroll")
        assert job.candidate_info.cgpa == 0

    def test_unknown_application(self, queue):
        with pytest.raises(ApplicationNotFoundError):
            queue.retrigger_analysis_for_application("missing")

    def test_retrigger_pending_only_takes_resumes(self, store, scheduler, analyzer):
        store.applications = {
            "1": {"id": "1", "name": "A", "specialization": "Finance", "resume_url": "/u/a.pdf",
                  "ai_analysis_status": "pending"},
            "2": {"id": "2", "name": "B", "specialization": "Finance", "resume_url": "/u/b.pdf",
                  "ai_analysis_status": None},
            "3": {"id": "3", "name": "C", "specialization": "Finance", "resume_url": None,
                  "ai_analysis_status": "pending"},
            "4": {"id": "4", "name": "D", "specialization": "Finance", "resume_url": "/u/d.pdf",
                  "ai_analysis_status": "completed"},
        }
        queue = AnalysisQueue(store=store, analyzer=analyzer, scheduler=scheduler)

        assert queue.retrigger_pending() == {"queued": 2, "failed": 0}
        assert queue.get_queue_status()["queue_length"] == 2


class TestQueries:
    def test_status_read_through(self, queue, store, candidate):
        queue.queue_resume_analysis("app-1", None, candidate)
        assert queue.get_analysis_status("app-1") == "processing"
        queue.tick()
        assert queue.get_analysis_status("app-1") == "completed"

    def test_status_read_error_returns_none(self, queue, store):
        store.fail_read = True
        assert queue.get_analysis_status("app-1") is None

    def test_queue_status_and_clear(self, queue, scheduler, candidate):
        assert queue.get_queue_status() == {"queue_length": 0, "processing": False, "is_running": False}
        queue.start()
        queue.queue_resume_analysis("app-1", None, candidate)
        assert queue.get_queue_status() == {"queue_length": 1, "processing": False, "is_running": True}
        queue.clear_queue()
        assert queue.get_queue_status()["queue_length"] == 0

    def test_stop_passes_wait_to_scheduler(self, queue, scheduler):
        queue.start()
        queue.stop(wait=True)
        assert scheduler.stopped_with is True
        assert queue.get_queue_status()["is_running"] is False


class SlowStatusStore(FakeStore):
    def update_analysis_status(self, application_id, status):
        time.sleep(0.2)
        super().update_analysis_status(application_id, status)


def _wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestBackgroundWorker:
    def test_processing_status_written_before_worker_can_finish(self, analyzer, candidate):
        store = SlowStatusStore()
        queue = AnalysisQueue(store=store, analyzer=analyzer, scheduler=IntervalScheduler(0.01))
        queue.start()
        try:
            queue.queue_resume_analysis("app-1", None, candidate)
            assert _wait_for(lambda: store.saved)
        finally:
            queue.stop(wait=True)

        assert store.events == [("status", "app-1", "processing"), ("save", "app-1")]
        assert store.statuses["app-1"] == "completed"

    def test_stop_then_waiting_stop_lets_job_finish(self, store, candidate):
        started = threading.Event()

        def slow_analyzer(file_path, info):
            started.set()
            time.sleep(0.3)
            return _result()

        queue = AnalysisQueue(store=store, analyzer=slow_analyzer, scheduler=IntervalScheduler(0.01))
        queue.queue_resume_analysis("app-1", None, candidate)
        queue.start()
        assert started.wait(2.0)

        # signal handler path, then the worker loop's final shutdown
        queue.stop()
        queue.stop(wait=True)

        assert [entry["application_id"] for entry in store.saved] == ["app-1"]
        assert store.statuses["app-1"] == "completed"


class TestIntervalScheduler:
    def test_waiting_stop_after_plain_stop_joins_running_tick(self):
        entered = threading.Event()
        finished = threading.Event()

        def callback():
            entered.set()
            time.sleep(0.3)
            finished.set()

        scheduler = IntervalScheduler(0.01)
        scheduler.start(callback)
        assert entered.wait(2.0)

        scheduler.stop()
        scheduler.stop(wait=True, timeout=5.0)

        assert finished.is_set()
        assert scheduler.running is False

    def test_runs_callback_until_stopped(self):
        ticked = threading.Event()
        scheduler = IntervalScheduler(0.01)

        scheduler.start(ticked.set)
        assert scheduler.running is True
        assert ticked.wait(2.0)

        scheduler.stop(wait=True, timeout=2.0)
        assert scheduler.running is False
        assert scheduler.wait(0) is True

    def test_failing_callback_keeps_running(self):
        calls = []

        def callback():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first tick fails")

        scheduler = IntervalScheduler(0.01)
        scheduler.start(callback)
        for _ in range(200):
            if len(calls) >= 2:
                break
            time.sleep(0.01)
        scheduler.stop(wait=True, timeout=2.0)
        assert len(calls) >= 2


def test_job_is_immutable(candidate):
    job = AnalysisJob(application_id="1", file_path=None, candidate_info=candidate)
    with pytest.raises(Exception):
        job.application_id = "2"
