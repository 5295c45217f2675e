"""
Job board domain types.

Plain records returned by the database layer and consumed by the resolvers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class Company:
    """A company publishing jobs."""

    id: str
    name: str
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
        }


@dataclass
class Job:
    """
    A job posting.

    Attributes:
        id: Unique identifier
        company_id: ID of the company that published the job
        title: Job title
        description: Free-form description
        created_at: When the job was published
    """

    id: str
    company_id: str
    title: str
    description: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def date(self) -> str:
        """Publication date in ISO-8601 format, e.g. ``2022-12-31``."""
        return self.created_at.date().isoformat()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "title": self.title,
            "description": self.description,
            "date": self.date,
        }


@dataclass
class JobPage:
    """One page of jobs plus the total number of jobs."""

    items: List[Job] = field(default_factory=list)
    total_count: int = 0

    def to_dict(self) -> dict:
        return {
            "items": [job.to_dict() for job in self.items],
            "total_count": self.total_count,
        }
