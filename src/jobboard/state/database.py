"""
Database module for the job board tables.

Uses SQLAlchemy for async database operations with SQLite by default.
The ``fetch_*_by_ids`` methods are the bulk lookups handed to the request
loaders: they return rows positionally aligned with the ids they were given,
with ``None`` (or an empty list) where nothing matched.
"""

import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import structlog
from sqlalchemy import Column, DateTime, ForeignKey, String, Text, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from jobboard.board.types import Company, Job
from jobboard.config import BoardConfig, get_config

logger = structlog.get_logger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_id() -> str:
    """Generate a short random identifier."""
    return uuid.uuid4().hex[:12]


class CompanyRecord(Base):
    """Database model for companies."""

    __tablename__ = "company"

    id = Column(String(32), primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)


class JobRecord(Base):
    """Database model for jobs."""

    __tablename__ = "job"

    id = Column(String(32), primary_key=True)
    company_id = Column(String(32), ForeignKey("company.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)


SAMPLE_COMPANIES = [
    ("FjcJCHJALA4i", "Facegle", "We are a startup on a mission to disrupt social search engines. Think Facebook meet Google."),
    ("Gu7QW9LcnF5d", "Goobook", "We are a startup on a mission to disrupt search social media. Think Google meet Facebook."),
]

SAMPLE_JOBS = [
    ("f3YzmnBZpK0o", "FjcJCHJALA4i", "Frontend Developer", "We are looking for a Frontend Developer familiar with React.", datetime(2024, 1, 26, 11, 0)),
    ("XYZNJMXFax6n", "FjcJCHJALA4i", "Backend Developer", "We are looking for a Backend Developer familiar with Node.js and Express.", datetime(2024, 1, 27, 11, 0)),
    ("6mA05AZxvS1R", "Gu7QW9LcnF5d", "Full-Stack Developer", "We are looking for a Full-Stack Developer familiar with Node.js, Express, and React.", datetime(2024, 1, 30, 11, 0)),
]


class Database:
    """
    Async database interface for companies and jobs.

    Provides point lookups, positionally aligned bulk lookups for the
    request loaders, pagination and job writes.
    """

    def __init__(self, config: Optional[BoardConfig] = None):
        """
        Initialize database connection settings.

        Args:
            config: Board configuration
        """
        self.config = config or get_config()
        self._engine = None
        self._session_factory = None

    async def connect(self) -> None:
        """Initialize database connection and create tables."""
        self._engine = create_async_engine(
            self.config.database_url,
            echo=self.config.database_echo,
        )

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("database_connected", url=self.config.database_url.split("///")[0])

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("database_disconnected")

    def _get_session(self) -> AsyncSession:
        """Get a new database session."""
        if not self._session_factory:
            raise RuntimeError("Database not connected")
        return self._session_factory()

    # Company operations

    async def get_company(self, company_id: str) -> Optional[Company]:
        """Load a company by ID."""
        async with self._get_session() as session:
            record = await session.get(CompanyRecord, company_id)
            return self._record_to_company(record) if record else None

    async def fetch_companies_by_ids(self, company_ids: Sequence[str]) -> List[Optional[Company]]:
        """
        Load many companies with a single query.

        Args:
            company_ids: Company IDs, possibly including unknown ones

        Returns:
            One entry per input ID, in the same order, ``None`` when missing
        """
        if not company_ids:
            return []

        async with self._get_session() as session:
            result = await session.execute(
                select(CompanyRecord).where(CompanyRecord.id.in_(list(company_ids)))
            )
            found: Dict[str, Company] = {
                r.id: self._record_to_company(r) for r in result.scalars().all()
            }

        logger.debug("companies_fetched", requested=len(company_ids), found=len(found))
        return [found.get(cid) for cid in company_ids]

    async def create_company(self, name: str, description: Optional[str] = None) -> Company:
        """Insert a new company."""
        record = CompanyRecord(id=generate_id(), name=name, description=description)
        async with self._get_session() as session:
            session.add(record)
            await session.commit()

        logger.info("company_created", company_id=record.id)
        return self._record_to_company(record)

    # Job operations

    async def get_job(self, job_id: str) -> Optional[Job]:
        """Load a job by ID."""
        async with self._get_session() as session:
            record = await session.get(JobRecord, job_id)
            return self._record_to_job(record) if record else None

    async def fetch_jobs_by_ids(self, job_ids: Sequence[str]) -> List[Optional[Job]]:
        """Load many jobs with a single query, aligned with ``job_ids``."""
        if not job_ids:
            return []

        async with self._get_session() as session:
            result = await session.execute(
                select(JobRecord).where(JobRecord.id.in_(list(job_ids)))
            )
            found = {r.id: self._record_to_job(r) for r in result.scalars().all()}

        return [found.get(jid) for jid in job_ids]

    async def get_jobs(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Job]:
        """
        Load jobs, newest first.

        Args:
            limit: Maximum number of jobs to return
            offset: Number of jobs to skip

        Returns:
            List of jobs
        """
        query = select(JobRecord).order_by(JobRecord.created_at.desc(), JobRecord.id)
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)

        async with self._get_session() as session:
            result = await session.execute(query)
            return [self._record_to_job(r) for r in result.scalars().all()]

    async def count_jobs(self) -> int:
        """Count all jobs."""
        async with self._get_session() as session:
            result = await session.execute(select(func.count()).select_from(JobRecord))
            return result.scalar_one()

    async def get_jobs_by_company(self, company_id: str) -> List[Job]:
        """Load every job published by a company, newest first."""
        async with self._get_session() as session:
            result = await session.execute(
                select(JobRecord)
                .where(JobRecord.company_id == company_id)
                .order_by(JobRecord.created_at.desc(), JobRecord.id)
            )
            return [self._record_to_job(r) for r in result.scalars().all()]

    async def fetch_jobs_by_company_ids(self, company_ids: Sequence[str]) -> List[List[Job]]:
        """
        Load the jobs of many companies with a single query.

        Returns:
            One list per input company ID, in the same order, empty when none
        """
        if not company_ids:
            return []

        async with self._get_session() as session:
            result = await session.execute(
                select(JobRecord)
                .where(JobRecord.company_id.in_(list(company_ids)))
                .order_by(JobRecord.created_at.desc(), JobRecord.id)
            )
            grouped: Dict[str, List[Job]] = defaultdict(list)
            for record in result.scalars().all():
                grouped[record.company_id].append(self._record_to_job(record))

        return [list(grouped.get(cid, [])) for cid in company_ids]

    async def create_job(
        self,
        company_id: str,
        title: str,
        description: Optional[str] = None,
    ) -> Job:
        """Insert a new job for a company."""
        record = JobRecord(
            id=generate_id(),
            company_id=company_id,
            title=title,
            description=description,
            created_at=_utcnow(),
        )
        async with self._get_session() as session:
            session.add(record)
            await session.commit()

        logger.info("job_created", job_id=record.id, company_id=company_id)
        return self._record_to_job(record)

    async def update_job(
        self,
        job_id: str,
        company_id: str,
        title: str,
        description: Optional[str] = None,
    ) -> Optional[Job]:
        """
        Update a job owned by a company.

        Returns:
            The updated job, or None if no such job belongs to the company
        """
        async with self._get_session() as session:
            record = await self._get_owned_job(session, job_id, company_id)
            if not record:
                return None

            record.title = title
            record.description = description
            await session.commit()

        logger.info("job_updated", job_id=job_id)
        return self._record_to_job(record)

    async def delete_job(self, job_id: str, company_id: str) -> Optional[Job]:
        """
        Delete a job owned by a company.

        Returns:
            The deleted job, or None if no such job belongs to the company
        """
        async with self._get_session() as session:
            record = await self._get_owned_job(session, job_id, company_id)
            if not record:
                return None

            job = self._record_to_job(record)
            await session.delete(record)
            await session.commit()

        logger.info("job_deleted", job_id=job_id)
        return job

    async def _get_owned_job(
        self,
        session: AsyncSession,
        job_id: str,
        company_id: str,
    ) -> Optional[JobRecord]:
        result = await session.execute(
            select(JobRecord).where(
                JobRecord.id == job_id,
                JobRecord.company_id == company_id,
            )
        )
        return result.scalar_one_or_none()

    # Sample data

    async def seed_sample_data(self) -> int:
        """
        Insert demo companies and jobs into an empty database.

        Returns:
            Number of rows inserted (0 if companies already exist)
        """
        async with self._get_session() as session:
            result = await session.execute(select(func.count()).select_from(CompanyRecord))
            if result.scalar_one() > 0:
                logger.info("sample_data_skipped")
                return 0

            for company_id, name, description in SAMPLE_COMPANIES:
                session.add(CompanyRecord(id=company_id, name=name, description=description))
            await session.flush()
            for job_id, company_id, title, description, created_at in SAMPLE_JOBS:
                session.add(JobRecord(
                    id=job_id,
                    company_id=company_id,
                    title=title,
                    description=description,
                    created_at=created_at,
                ))
            await session.commit()

        inserted = len(SAMPLE_COMPANIES) + len(SAMPLE_JOBS)
        logger.info("sample_data_seeded", rows=inserted)
        return inserted

    # Conversions

    def _record_to_company(self, record: CompanyRecord) -> Company:
        return Company(id=record.id, name=record.name, description=record.description)

    def _record_to_job(self, record: JobRecord) -> Job:
        return Job(
            id=record.id,
            company_id=record.company_id,
            title=record.title,
            description=record.description,
            created_at=record.created_at,
        )


async def init_database(config: Optional[BoardConfig] = None) -> Database:
    """
    Initialize and connect to the database.

    Args:
        config: Board configuration

    Returns:
        Connected Database instance
    """
    db = Database(config)
    await db.connect()
    return db
