"""Campus SMS - FastAPI entrypoint."""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import ServerSelectionTimeoutError

from app.config import settings
from app.db import db_shutdown, init_db
from app.services.roles import ensure_default_roles
from app.services.schedule_conflict import ScheduleConflictError
from app.api import (
    academics,
    assignments,
    attendance,
    classes,
    courses,
    dashboard,
    grades,
    homeroom,
    quizzes,
    roles,
    schedule,
    users,
)
from app.api.deps import require_module_permission

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await init_db()
        await ensure_default_roles()
    except ServerSelectionTimeoutError as e:
        logger.error(
            "MongoDB is not running. Start it with: docker compose up -d (from project root)"
        )
        raise RuntimeError(
            "MongoDB connection failed. Start MongoDB (e.g. docker compose up -d)."
        ) from e
    yield
    await db_shutdown()


app = FastAPI(
    title=settings.app_name,
    description="School management: courses, timetables, attendance and grading",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": errors},
    )


@app.exception_handler(ScheduleConflictError)
async def schedule_conflict_handler(request: Request, exc: ScheduleConflictError):
    logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": exc.message,
            "conflicts": [
                {**c.model_dump(), "message": c.describe()} for c in exc.conflicts
            ],
        },
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _guard(module: str):
    return [Depends(require_module_permission(module))]


# API routes
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"], dependencies=_guard("dashboard"))
app.include_router(academics.router, prefix="/api/academics", tags=["Academics"], dependencies=_guard("academics"))
app.include_router(classes.router, prefix="/api/classes", tags=["Classes"], dependencies=_guard("classes"))
app.include_router(courses.router, prefix="/api/courses", tags=["Courses"], dependencies=_guard("courses"))
app.include_router(schedule.router, prefix="/api/schedule", tags=["Schedule"], dependencies=_guard("schedule"))
app.include_router(attendance.router, prefix="/api/attendance", tags=["Attendance"], dependencies=_guard("attendance"))
app.include_router(assignments.router, prefix="/api/assignments", tags=["Assignments"], dependencies=_guard("assignments"))
app.include_router(quizzes.router, prefix="/api/quizzes", tags=["Quizzes"], dependencies=_guard("quizzes"))
app.include_router(grades.router, prefix="/api/grades", tags=["Grades"], dependencies=_guard("grades"))
app.include_router(homeroom.router, prefix="/api/homeroom", tags=["Homeroom"], dependencies=_guard("homeroom"))
app.include_router(users.router, prefix="/api/users", tags=["Users"], dependencies=_guard("users"))
app.include_router(roles.router, prefix="/api/roles", tags=["Roles & Permissions"], dependencies=_guard("roles_permissions"))


@app.get("/health")
def health():
    return {"status": "ok", "app": settings.app_name}
