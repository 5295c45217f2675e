"""
Per-request context.

Every incoming request gets its own loaders so cached rows never leak from
one request into another.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from jobboard.board.types import Company, Job
from jobboard.config import BoardConfig, get_config
from jobboard.core.loader import BatchLoader
from jobboard.state.database import Database

logger = structlog.get_logger(__name__)


def create_company_loader(
    database: Database,
    config: Optional[BoardConfig] = None,
) -> BatchLoader[str, Optional[Company]]:
    """Create a loader fetching companies by ID in one query per tick."""
    config = config or get_config()
    return BatchLoader(
        database.fetch_companies_by_ids,
        max_batch_size=config.loader_max_batch_size,
        cache=config.loader_cache,
        name="company_loader",
    )


def create_job_loader(
    database: Database,
    config: Optional[BoardConfig] = None,
) -> BatchLoader[str, Optional[Job]]:
    """Create a loader fetching jobs by ID in one query per tick."""
    config = config or get_config()
    return BatchLoader(
        database.fetch_jobs_by_ids,
        max_batch_size=config.loader_max_batch_size,
        cache=config.loader_cache,
        name="job_loader",
    )


def create_jobs_by_company_loader(
    database: Database,
    config: Optional[BoardConfig] = None,
) -> BatchLoader[str, List[Job]]:
    """Create a loader fetching the job lists of many companies in one query."""
    config = config or get_config()
    return BatchLoader(
        database.fetch_jobs_by_company_ids,
        max_batch_size=config.loader_max_batch_size,
        cache=config.loader_cache,
        name="jobs_by_company_loader",
    )


@dataclass
class RequestContext:
    """
    State shared by the resolvers of one request.

    Attributes:
        database: Data accessor
        auth: Decoded access-token claims, None for anonymous requests
        company_loader: Companies by ID
        job_loader: Jobs by ID
        jobs_by_company_loader: Job lists by company ID
        config: Board configuration
    """

    database: Database
    company_loader: BatchLoader[str, Optional[Company]]
    job_loader: BatchLoader[str, Optional[Job]]
    jobs_by_company_loader: BatchLoader[str, List[Job]]
    auth: Optional[dict] = None
    config: BoardConfig = field(default_factory=get_config)

    @property
    def company_id(self) -> Optional[str]:
        """Company the authenticated user belongs to."""
        if not self.auth:
            return None
        return self.auth.get("company_id")

    def loader_stats(self) -> dict:
        return {
            "company_loader": self.company_loader.stats,
            "job_loader": self.job_loader.stats,
            "jobs_by_company_loader": self.jobs_by_company_loader.stats,
        }


def create_request_context(
    database: Database,
    auth: Optional[dict] = None,
    config: Optional[BoardConfig] = None,
) -> RequestContext:
    """
    Build a fresh context for one request.

    Args:
        database: Connected database
        auth: Decoded access-token claims, if the request is authenticated
        config: Board configuration

    Returns:
        New RequestContext with empty loaders
    """
    config = config or get_config()
    logger.debug("request_context_created", authenticated=auth is not None)
    return RequestContext(
        database=database,
        company_loader=create_company_loader(database, config),
        job_loader=create_job_loader(database, config),
        jobs_by_company_loader=create_jobs_by_company_loader(database, config),
        auth=auth,
        config=config,
    )
