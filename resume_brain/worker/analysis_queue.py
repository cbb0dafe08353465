"""In-process background queue for resume analysis.

Jobs are drained one at a time by a polling worker. Analysis failures are
absorbed by the fallback strategies; only a failed write-back marks an
application ``failed``.
"""

from __future__ import annotations

import os
import signal
import threading
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Dict, Optional

from loguru import logger

from ..core import database
from ..core.config import settings
from ..core.models import AIAnalysisResult, AnalysisJob, AnalysisStatus, CandidateInfo
from ..llm_engine.ai_engine import analyze_resume_from_file
from ..llm_engine.scoring import create_fallback_analysis, create_no_resume_analysis

Analyzer = Callable[[Optional[str], CandidateInfo], AIAnalysisResult]


class ApplicationNotFoundError(LookupError):
    """Raised when a re-trigger names an application that does not exist."""


class QueueState(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"


class IntervalScheduler:
    """Calls a function every ``interval`` seconds on a background thread."""

    def __init__(self, interval: float) -> None:
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self, callback: Callable[[], Any]) -> None:
        if self.running:
            logger.warning("Scheduler already running")
            return
        if self._thread is not None and self._thread is not threading.current_thread():
            # a stopped worker may still be finishing its last tick
            self._thread.join()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            args=(callback,),
            daemon=True,
            name="analysis-queue",
        )
        self._thread.start()

    def _run(self, callback: Callable[[], Any]) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                callback()
            except Exception:
                logger.exception("Scheduled queue tick failed")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until stopped or ``timeout`` elapses. Returns True once stopped."""
        return self._stop_event.wait(timeout)

    def stop(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        """Stop future ticks. With ``wait`` the running tick is allowed to finish.

        The worker thread is kept until a waiting call has joined it, so
        ``stop()`` followed by ``stop(wait=True)`` still waits.
        """
        self._stop_event.set()
        thread = self._thread
        if not wait or thread is None or thread is threading.current_thread():
            return
        thread.join(timeout)
        if not thread.is_alive():
            self._thread = None


class AnalysisQueue:
    """FIFO analysis queue with a single worker.

    Args:
        store: Persistence backend exposing the ``core.database`` functions
        analyzer: Callable producing an ``AIAnalysisResult`` for a file and candidate
        scheduler: Object with ``start(callback)``, ``stop(wait)`` and ``running``
        upload_path: Directory holding uploaded resumes
    """

    def __init__(
        self,
        store: Any = None,
        analyzer: Optional[Analyzer] = None,
        scheduler: Any = None,
        upload_path: Optional[str] = None,
    ) -> None:
        self.store: Any = store if store is not None else database
        self.analyzer: Analyzer = analyzer or analyze_resume_from_file
        self.scheduler = scheduler if scheduler is not None else IntervalScheduler(settings.QUEUE_POLL_INTERVAL)
        self.upload_path = upload_path if upload_path is not None else settings.UPLOAD_PATH

        self._jobs: Deque[AnalysisJob] = deque()
        self._lock = threading.Lock()
        self._state = QueueState.IDLE

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self.scheduler.running:
            return
        self.scheduler.start(self.tick)
        logger.info("AI analysis queue: background processing started")

    def stop(self, wait: bool = False) -> None:
        self.scheduler.stop(wait=wait)
        logger.info("AI analysis queue: background processing stopped")

    @property
    def state(self) -> QueueState:
        return self._state

    # ------------------------------------------------------------------
    # Producers
    # ------------------------------------------------------------------
    def add_job(self, job: AnalysisJob) -> None:
        """Mark the application as processing, then append the job."""
        logger.info("Adding AI analysis job for application: {}", job.application_id)
        self._update_status(job.application_id, AnalysisStatus.PROCESSING)
        with self._lock:
            self._jobs.append(job)

    def queue_resume_analysis(
        self,
        application_id: str,
        file_path: Optional[str],
        candidate_info: CandidateInfo,
    ) -> AnalysisJob:
        job = AnalysisJob(application_id=str(application_id), file_path=file_path, candidate_info=candidate_info)
        self.add_job(job)
        return job

    def retrigger_analysis_for_application(self, application_id: str) -> AnalysisJob:
        """Rebuild a job from the stored application and queue it again."""
        record = self.store.get_application(application_id)
        if not record:
            raise ApplicationNotFoundError(f"Application not found: {application_id}")

        job = self.queue_resume_analysis(
            application_id,
            record.get("resume_url") or None,
            CandidateInfo.from_record(record),
        )
        logger.info("Re-triggered analysis for application: {}", application_id)
        return job

    def retrigger_pending(self) -> Dict[str, int]:
        """Queue every pending application that has a resume."""
        queued = failed = 0
        for record in self.store.list_pending_applications(with_resume=True):
            try:
                self.queue_resume_analysis(
                    record["id"], record.get("resume_url"), CandidateInfo.from_record(record)
                )
                queued += 1
            except Exception as e:
                logger.error("Failed to queue application {}: {}", record.get("id"), e)
                failed += 1
        logger.info("Re-trigger summary: queued={}, failed={}", queued, failed)
        return {"queued": queued, "failed": failed}

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------
    def tick(self) -> bool:
        """Process the oldest job if idle. Returns True when a job ran."""
        with self._lock:
            if self._state is QueueState.PROCESSING or not self._jobs:
                return False
            self._state = QueueState.PROCESSING
            job = self._jobs.popleft()

        try:
            self._process(job)
        finally:
            with self._lock:
                self._state = QueueState.IDLE
        return True

    def drain(self) -> int:
        """Run jobs until the queue is empty. Returns the number processed."""
        processed = 0
        while self.tick():
            processed += 1
        return processed

    def _process(self, job: AnalysisJob) -> None:
        logger.info("Processing AI analysis for application: {}", job.application_id)
        try:
            result = self._perform_analysis(job)
        except Exception:
            logger.exception("AI analysis failed for application: {}", job.application_id)
            result = self._substitute_analysis(job)

        if self._store_analysis_results(job.application_id, result):
            logger.info("AI analysis completed for application: {}, Score: {}", job.application_id, result.score)

    def _resolve_path(self, file_path: Optional[str]) -> Optional[str]:
        if not file_path:
            return None
        return os.path.join(self.upload_path, os.path.basename(file_path))

    def _perform_analysis(self, job: AnalysisJob) -> AIAnalysisResult:
        full_path = self._resolve_path(job.file_path)
        logger.info("Analyzing resume file: {}", full_path)

        result = self.analyzer(full_path, job.candidate_info)
        if not result.success:
            logger.warning("AI analysis failed, creating fallback analysis")
            return create_fallback_analysis(job.candidate_info)
        return result

    def _substitute_analysis(self, job: AnalysisJob) -> AIAnalysisResult:
        if job.file_path:
            return create_fallback_analysis(job.candidate_info)
        return create_no_resume_analysis(job.candidate_info)

    def _store_analysis_results(self, application_id: str, result: AIAnalysisResult) -> bool:
        try:
            self.store.save_analysis_result(application_id, **result.storage_fields())
            return True
        except Exception:
            logger.exception("Failed to store analysis results for application: {}", application_id)
            self._update_status(application_id, AnalysisStatus.FAILED)
            return False

    def _update_status(self, application_id: str, status: AnalysisStatus) -> None:
        try:
            self.store.update_analysis_status(application_id, status.value)
        except Exception as e:
            logger.error("Failed to update analysis status for application: {}: {}", application_id, e)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_analysis_status(self, application_id: str) -> Optional[str]:
        try:
            return self.store.get_analysis_status(application_id)
        except Exception as e:
            logger.error("Error getting analysis status: {}", e)
            return None

    def get_queue_status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "queue_length": len(self._jobs),
                "processing": self._state is QueueState.PROCESSING,
                "is_running": bool(self.scheduler.running),
            }

    def clear_queue(self) -> None:
        with self._lock:
            self._jobs.clear()
        logger.info("AI analysis queue: queue cleared")


def install_signal_handlers(queue: AnalysisQueue) -> None:
    """Stop the queue on SIGTERM/SIGINT. Must be called from the main thread."""

    def _handle(signum, frame):
        logger.info("Shutting down AI analysis queue (signal {})...", signum)
        queue.stop()

    signal.signal(signal.SIGTERM, _handle)
    signal.signal(signal.SIGINT, _handle)
