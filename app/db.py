"""MongoDB connection and Beanie document registration."""
import logging
from contextlib import asynccontextmanager

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from app.config import settings
from app.models import (
    User,
    Role,
    AcademicYear,
    Term,
    Subject,
    SchoolClass,
    Course,
    Assignment,
    Submission,
    Attendance,
    Schedule,
    Quiz,
    QuizQuestion,
)


logger = logging.getLogger(__name__)

_client = None


async def db_startup():
    """Connect to MongoDB and initialize Beanie ODM."""
    global _client
    _client = AsyncIOMotorClient(settings.mongodb_url)
    await init_beanie(
        database=_client[settings.mongodb_db_name],
        document_models=[
            User,
            Role,
            AcademicYear,
            Term,
            Subject,
            SchoolClass,
            Course,
            Assignment,
            Submission,
            Attendance,
            Schedule,
            Quiz,
            QuizQuestion,
        ],
    )


async def db_shutdown():
    """Close MongoDB connection."""
    global _client
    if _client:
        _client.close()
        _client = None


async def init_db():
    """Alias for db_startup."""
    await db_startup()


@asynccontextmanager
async def transaction():
    """Yield a client session inside a transaction (or None when disabled).

    Pass the yielded value as ``session=`` to every Beanie call in the block;
    leaving the block normally commits, raising aborts.
    """
    try:
        if not settings.mongodb_transactions or _client is None:
            yield None
            return
        async with await _client.start_session() as session:
            async with session.start_transaction():
                yield session
    except Exception:
        logger.exception("Transactional write failed")
        raise
