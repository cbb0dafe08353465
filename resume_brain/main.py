"""FastAPI application exposing the resume analysis queue to the portal and admin tooling."""
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import RedirectResponse
from loguru import logger
from pydantic import BaseModel

from .core.config import settings
from .core.models import CandidateInfo
from .worker.analysis_queue import AnalysisQueue, ApplicationNotFoundError

# Configure logging
logger.add(settings.LOG_FILE, rotation="10 MB", level=settings.LOG_LEVEL)


class AnalysisJobRequest(BaseModel):
    application_id: str
    resume_path: Optional[str] = None
    candidate_info: CandidateInfo


def _queue(request: Request) -> AnalysisQueue:
    return request.app.state.analysis_queue


def create_app(analysis_queue: Optional[AnalysisQueue] = None) -> FastAPI:
    """Build the service. The queue is started on startup and stopped on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        queue = analysis_queue or AnalysisQueue()
        app.state.analysis_queue = queue
        logger.info("Starting resume analysis service...")
        queue.start()
        yield
        logger.info("Shutting down AI analysis queue...")
        queue.stop(wait=True)

    app = FastAPI(
        title="Resume Brain - Internship Resume Analysis",
        version="1.0.0",
        description="Background resume analysis for internship applications.",
        lifespan=lifespan,
    )

    @app.get("/", include_in_schema=False)
    def root():
        """Redirect root to API documentation immediately."""
        return RedirectResponse(url="/docs", status_code=307)

    @app.post("/analysis/jobs", status_code=202)
    def queue_resume_analysis(body: AnalysisJobRequest, request: Request) -> Dict[str, Any]:
        """Queue analysis for a newly submitted application, with or without a resume."""
        job = _queue(request).queue_resume_analysis(body.application_id, body.resume_path, body.candidate_info)
        return {"application_id": job.application_id, "status": "processing"}

    @app.get("/analysis/queue")
    def get_queue_status(request: Request) -> Dict[str, Any]:
        return _queue(request).get_queue_status()

    @app.get("/analysis/{application_id}/status")
    def get_analysis_status(application_id: str, request: Request) -> Dict[str, Any]:
        status = _queue(request).get_analysis_status(application_id)
        if status is None:
            raise HTTPException(status_code=404, detail=f"No analysis status for application {application_id}")
        return {"application_id": application_id, "status": status}

    @app.post("/analysis/{application_id}/retrigger", status_code=202)
    def retrigger_analysis(application_id: str, request: Request) -> Dict[str, Any]:
        """Re-queue a stuck or failed application from its stored data."""
        try:
            job = _queue(request).retrigger_analysis_for_application(application_id)
        except ApplicationNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except Exception as exc:
            logger.exception("Re-trigger failed for application {}", application_id)
            raise HTTPException(status_code=500, detail=f"Re-trigger failed: {str(exc)}")
        return {
            "application_id": job.application_id,
            "status": "processing",
            "has_resume": job.file_path is not None,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
