"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the student enrollment
backend. Controllers are intentionally thin: they accept requests,
delegate to services, and return JSON responses. Service errors are
translated to status codes in one exception handler.

Endpoints implemented:
- GET /health
- GET /health/db
- GET /api/students
- GET /api/students/{student_id}
- POST /api/students/import
- GET /api/courses/{course_id}
"""

from fastapi import FastAPI, Depends, UploadFile, File, HTTPException, Request, Query
from fastapi.responses import JSONResponse, HTMLResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session
from typing import List, Optional
import json
import logging
import time
import uuid
from .database import create_db_and_tables, get_session, ping
from . import services
from .errors import EnrollmentAppError, StoreUnavailableError
from .schemas import StudentSummaryOut, CourseOut, ImportResultOut
from .config import settings
from sqlalchemy.exc import SQLAlchemyError

app = FastAPI(title="Student Enrollment API")
logger = logging.getLogger("enrollment.api")
if not logging.getLogger().handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

# Wide-open CORS keeps a locally opened portal page working without extra config in dev.
if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Shared databases are provisioned ahead of time; only the local SQLite file is bootstrapped here.
if settings.DATABASE_URL.startswith("sqlite"):
    create_db_and_tables()


@app.exception_handler(EnrollmentAppError)
async def app_error_handler(request: Request, exc: EnrollmentAppError):
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    if request.url.path.startswith("/api"):
        logger.info(
            "request_done %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else "unknown",
                },
                ensure_ascii=True,
            ),
        )
    return response


@app.get('/api/students', response_model=List[StudentSummaryOut])
def list_students(
    search: Optional[str] = Query(default=None, max_length=100),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_session),
):
    """List students, optionally filtered by a first/last name substring.

    Each entry carries its `total_credits`; enrollment details are only
    returned by the single-student endpoint.
    """
    return services.StudentService(db).search(search, limit=limit, offset=offset)


@app.get('/api/students/{student_id}', response_model=StudentSummaryOut)
def get_student(student_id: int, db: Session = Depends(get_session)):
    """Return a student with enrollments and the summed course credits.

    404 when the id does not exist, 503 when the database is unreachable.
    """
    return services.StudentService(db).get_summary(student_id)


@app.post('/api/students/import', response_model=ImportResultOut)
def import_students(file: UploadFile = File(...), deduplicate: bool = False, db: Session = Depends(get_session)):
    """Upload a CSV or JSON file of students and insert them in one statement.

    Returns a summary with the inserted row count and per-row validation
    errors. Rows that fail validation are reported, not inserted.
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail='no file')
    content = file.file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail='file too large')
    svc = services.BulkInsertService(db)
    try:
        res = svc.upload_csv(content, file.filename, deduplicate=deduplicate)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if res['inserted'] == 0 and res['errors'] and not res['skipped']:
        return JSONResponse(status_code=400, content={'detail': 'no valid student rows', **res})
    return res


@app.get('/api/courses/{course_id}', response_model=CourseOut)
def get_course(course_id: int, db: Session = Depends(get_session)):
    """Return a course with its department name."""
    return services.CourseService(db).get(course_id)


@app.get("/", response_class=HTMLResponse)
def home():
    """Minimal homepage for quick manual testing."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
      <meta charset="UTF-8" />
      <title>Student Enrollment API</title>
      <style>
        body { font-family: Arial, sans-serif; margin: 32px; }
        a { color: #0a6; }
        .card { max-width: 640px; padding: 16px; border: 1px solid #ddd; border-radius: 8px; }
      </style>
    </head>
    <body>
      <div class="card">
        <h1>Student Enrollment API</h1>
        <p>Quick links for local testing:</p>
        <ul>
          <li><a href="/docs">Swagger UI</a></li>
          <li><a href="/api/students">All students</a></li>
          <li><a href="/health/db">Database check</a></li>
        </ul>
        <p>Try <code>/api/students?search=smith</code> or <code>/api/students/1</code> for a credit total.</p>
      </div>
    </body>
    </html>
    """


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}


@app.get("/health/db")
def health_db():
    """Check that the configured database answers `SELECT 1`."""
    try:
        ping()
    except SQLAlchemyError as e:
        logger.error("health_db_failed %s", json.dumps({"error": str(e)}))
        raise StoreUnavailableError("database unreachable")
    return {"status": "ok"}
