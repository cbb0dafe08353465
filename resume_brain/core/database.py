"""Database layer for application analysis results, with parameterized queries and safe connection management."""
from typing import Any, Dict, List, Optional
from contextlib import contextmanager

from loguru import logger

from .config import settings

APPLICATION_COLUMNS = (
    "id", "name", "college", "specialization", "cgpa", "skills",
    "experience", "resume_url", "ai_analysis_status",
)


@contextmanager
def get_connection():
    """Context manager for database connections with automatic cleanup."""
    if not settings.db_conn:
        raise RuntimeError("DB_CONN environment variable not configured")
    try:
        import pyodbc
    except ImportError:
        raise ImportError("pyodbc is required for database access. Install with: pip install pyodbc")

    conn = pyodbc.connect(settings.db_conn)
    try:
        yield conn
    except Exception as e:
        logger.error("Database error: {}", e)
        conn.rollback()
        raise
    finally:
        conn.close()


def _row_to_application(row) -> Dict[str, Any]:
    return {column: getattr(row, column, None) for column in APPLICATION_COLUMNS}


def _select_applications(where: str, params: tuple = ()) -> List[Dict[str, Any]]:
    query = (
        f"SELECT {', '.join(APPLICATION_COLUMNS)} FROM applications "
        f"WHERE {where} ORDER BY created_at DESC"
    )
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute(query, params)
        return [_row_to_application(row) for row in cursor.fetchall()]


def update_analysis_status(application_id: str, status: str) -> None:
    """Set ai_analysis_status for one application."""
    query = (
        "UPDATE applications SET ai_analysis_status = ?, updated_at = CURRENT_TIMESTAMP "
        "WHERE id = ?"
    )
    try:
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, (status, application_id))
            conn.commit()
    except Exception as e:
        logger.error("Failed to update analysis status application_id={}: {}", application_id, e)
        raise


def save_analysis_result(
    application_id: str,
    score: int,
    strengths: str,
    weaknesses: str,
    prediction: str,
) -> None:
    """
    Write an analysis result and mark the application completed.

    Args:
        application_id: Application primary key
        score: Integer score
        strengths: JSON array serialized as text
        weaknesses: JSON array serialized as text
        prediction: Predicted role
    """
    query = (
        "UPDATE applications SET ai_score = ?, ai_strengths = ?, ai_weaknesses = ?, "
        "ai_prediction = ?, ai_analysis_status = 'completed', updated_at = CURRENT_TIMESTAMP "
        "WHERE id = ?"
    )
    try:
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, (score, strengths, weaknesses, prediction, application_id))
            conn.commit()
            logger.info("Analysis results stored for application_id={}", application_id)
    except Exception as e:
        logger.error("Failed to store analysis results application_id={}: {}", application_id, e)
        raise


def get_analysis_status(application_id: str) -> Optional[str]:
    """Return ai_analysis_status for an application, or None if it does not exist."""
    query = "SELECT ai_analysis_status FROM applications WHERE id = ?"
    try:
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, (application_id,))
            row = cursor.fetchone()
            if not row:
                return None
            return getattr(row, "ai_analysis_status", None)
    except Exception as e:
        logger.error("Failed to fetch analysis status application_id={}: {}", application_id, e)
        raise


def get_application(application_id: str) -> Optional[Dict[str, Any]]:
    """
    Fetch the candidate fields and resume path of one application.
    Returns dict keyed by APPLICATION_COLUMNS, or None when not found.
    """
    query = f"SELECT {', '.join(APPLICATION_COLUMNS)} FROM applications WHERE id = ?"
    try:
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, (application_id,))
            row = cursor.fetchone()
            if not row:
                return None
            return _row_to_application(row)
    except Exception as e:
        logger.error("Failed to fetch application application_id={}: {}", application_id, e)
        raise


def list_pending_applications(with_resume: bool) -> List[Dict[str, Any]]:
    """Applications whose analysis never started, newest first."""
    if with_resume:
        resume_clause = "resume_url IS NOT NULL AND resume_url <> ''"
    else:
        resume_clause = "(resume_url IS NULL OR resume_url = '')"
    where = f"{resume_clause} AND (ai_analysis_status IS NULL OR ai_analysis_status = 'pending')"
    try:
        return _select_applications(where)
    except Exception as e:
        logger.error("Failed to list pending applications: {}", e)
        raise


def list_applications_with_resume() -> List[Dict[str, Any]]:
    """Every application that has an uploaded resume, newest first."""
    try:
        return _select_applications("resume_url IS NOT NULL AND resume_url <> ''")
    except Exception as e:
        logger.error("Failed to list applications with resume: {}", e)
        raise


def count_by_status() -> Dict[str, int]:
    """Number of applications per analysis status; NULL is reported as 'none'."""
    query = "SELECT ai_analysis_status, COUNT(*) AS total FROM applications GROUP BY ai_analysis_status"
    try:
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query)
            return {
                (getattr(row, "ai_analysis_status", None) or "none"): int(getattr(row, "total", 0))
                for row in cursor.fetchall()
            }
    except Exception as e:
        logger.error("Failed to count applications by status: {}", e)
        raise
