"""Background analysis queue.

Provides the single-worker queue that runs resume analysis jobs.
"""

from .analysis_queue import AnalysisQueue, ApplicationNotFoundError, IntervalScheduler, QueueState

__all__ = ["AnalysisQueue", "ApplicationNotFoundError", "IntervalScheduler", "QueueState"]
