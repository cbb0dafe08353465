"""Operational commands for the resume analysis queue.

Run ``resume-brain --help`` for the list of commands.
"""
import argparse
import os
import sys
from typing import List, Optional

from loguru import logger

from .core import database
from .core.config import settings
from .core.models import CandidateInfo
from .llm_engine.ai_engine import analyze_resume_from_file
from .llm_engine.scoring import create_no_resume_analysis
from .resume_parser.resume_extractor import extract_text_from_file
from .utils.content_validator import validate_resume_content
from .utils.text_cleaner import validate_text_for_analysis
from .worker.analysis_queue import AnalysisQueue, ApplicationNotFoundError, install_signal_handlers

STATUS_ORDER = ("completed", "processing", "pending", "failed", "none")

_log_sink_id: Optional[int] = None


def run_worker(args: argparse.Namespace) -> int:
    queue = AnalysisQueue()
    install_signal_handlers(queue)
    queue.start()
    logger.info("Worker running, polling every {}s. Press Ctrl+C to stop.", queue.scheduler.interval)
    while queue.scheduler.running:
        queue.scheduler.wait(1.0)
    queue.stop(wait=True)
    return 0


def run_retrigger(args: argparse.Namespace) -> int:
    queue = AnalysisQueue()
    if args.target == "all":
        summary = queue.retrigger_pending()
        print(f"Queued: {summary['queued']}, failed to queue: {summary['failed']}")
    else:
        if not args.application_id:
            print("An application id is required: resume-brain retrigger specific <id>", file=sys.stderr)
            return 2
        try:
            queue.retrigger_analysis_for_application(args.application_id)
        except ApplicationNotFoundError as exc:
            print(str(exc), file=sys.stderr)
            return 1
    processed = queue.drain()
    print(f"Processed {processed} job(s)")
    return 0


def run_process_no_resume(args: argparse.Namespace) -> int:
    applications = database.list_pending_applications(with_resume=False)
    if not applications:
        print("No applications without resumes need processing")
        return 0

    failures = 0
    for record in applications:
        try:
            result = create_no_resume_analysis(CandidateInfo.from_record(record))
            database.save_analysis_result(record["id"], **result.storage_fields())
            print(f"{record['name']} ({record['specialization']}): score {result.score}/100")
        except Exception as e:
            logger.error("Failed to process application {}: {}", record.get("id"), e)
            database.update_analysis_status(record["id"], "failed")
            failures += 1
    return 1 if failures else 0


def run_reprocess(args: argparse.Namespace) -> int:
    failures = 0
    for record in database.list_applications_with_resume():
        resume_path = os.path.join(settings.UPLOAD_PATH, os.path.basename(record["resume_url"]))
        if not os.path.isfile(resume_path):
            print(f"{record['name']}: resume file not found ({record['resume_url']})")
            continue

        result = analyze_resume_from_file(resume_path, CandidateInfo.from_record(record))
        if result.validation:
            print(
                f"{record['name']}: valid={result.validation.is_valid}, "
                f"confidence={result.validation.confidence}%, match={result.validation.match_score}%"
            )
        try:
            database.save_analysis_result(record["id"], **result.storage_fields())
            print(f"{record['name']}: score {result.score}/100")
        except Exception as e:
            logger.error("Failed to store reprocessed result for {}: {}", record.get("id"), e)
            failures += 1
    return 1 if failures else 0


def run_status(args: argparse.Namespace) -> int:
    counts = database.count_by_status()
    for status in STATUS_ORDER:
        print(f"{status:>10}: {counts.get(status, 0)}")
    print(f"{'total':>10}: {sum(counts.values())}")
    return 0


def run_check_resume(args: argparse.Namespace) -> int:
    extraction = extract_text_from_file(args.path)
    print(f"Success: {extraction.success}")
    if extraction.error:
        print(f"Error: {extraction.error}")
    print(f"Words: {extraction.word_count or 0}")
    print("Preview:")
    print(extraction.text[:300])

    usable, reason = validate_text_for_analysis(extraction.text)
    print(f"Sufficient for AI analysis: {usable}" + (f" ({reason})" if reason else ""))

    if args.name and args.specialization:
        validation = validate_resume_content(extraction.text, args.name, args.specialization)
        print(
            f"Validation: valid={validation.is_valid}, confidence={validation.confidence}%, "
            f"match={validation.match_score}%"
        )
        for issue in validation.issues:
            print(f"  - {issue}")
    return 0 if extraction.success else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="resume-brain", description="Resume analysis queue operations.")
    sub = parser.add_subparsers(dest="command", required=True)

    worker = sub.add_parser("worker", help="Run the analysis queue until SIGTERM/SIGINT")
    worker.set_defaults(func=run_worker)

    retrigger = sub.add_parser("retrigger", help="Queue analysis again and process it")
    retrigger.add_argument("target", choices=["all", "specific"], help="All pending applications or one id")
    retrigger.add_argument("application_id", nargs="?", help="Application id when target is 'specific'")
    retrigger.set_defaults(func=run_retrigger)

    no_resume = sub.add_parser("process-no-resume", help="Score pending applications that have no resume")
    no_resume.set_defaults(func=run_process_no_resume)

    reprocess = sub.add_parser("reprocess", help="Re-run analysis for every stored resume")
    reprocess.set_defaults(func=run_reprocess)

    status = sub.add_parser("status", help="Count applications per analysis status")
    status.set_defaults(func=run_status)

    check = sub.add_parser("check-resume", help="Show what extraction and validation make of a file")
    check.add_argument("path", help="Resume file path")
    check.add_argument("--name", help="Applicant name to validate against")
    check.add_argument("--specialization", help="Specialization to validate against")
    check.set_defaults(func=run_check_resume)

    return parser


def _configure_logging() -> None:
    global _log_sink_id
    if _log_sink_id is None:
        _log_sink_id = logger.add(settings.LOG_FILE, rotation="10 MB", level=settings.LOG_LEVEL)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
