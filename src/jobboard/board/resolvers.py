"""
Job board resolvers.

One function per field of the job board schema. Field resolvers read through
the request loaders, so resolving the company of every job in a page costs a
single company query. Write resolvers keep the loaders consistent with what
they wrote.
"""

import asyncio
from typing import List, Optional

import structlog

from jobboard.board.context import RequestContext
from jobboard.board.types import Company, Job, JobPage

logger = structlog.get_logger(__name__)


class ResolverError(Exception):
    """Error reported to the client with a machine-readable code."""

    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def extensions(self) -> dict:
        return {"code": self.code}


class NotFoundError(ResolverError):
    """The requested entity does not exist."""
    code = "NOT_FOUND"


class UnauthorisedError(ResolverError):
    """The request is not allowed to perform a write."""
    code = "UNAUTHORISED"

    @property
    def extensions(self) -> dict:
        return {
            "code": self.code,
            "message": "You must be logged in to create a job.",
        }


# Queries

async def jobs(
    ctx: RequestContext,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> JobPage:
    """
    Load one page of jobs, newest first.

    Jobs loaded here are primed into the job loader so later ``job`` lookups
    in the same request reuse them.
    """
    limit = ctx.config.clamp_limit(limit)
    offset = max(0, offset or 0)

    items, total_count = await asyncio.gather(
        ctx.database.get_jobs(limit=limit, offset=offset),
        ctx.database.count_jobs(),
    )
    for item in items:
        ctx.job_loader.prime(item.id, item)

    return JobPage(items=items, total_count=total_count)


async def job(ctx: RequestContext, job_id: str) -> Job:
    found = await ctx.job_loader.load(job_id)
    if found is None:
        raise NotFoundError(f"Job with id {job_id} not found")
    return found


async def company(ctx: RequestContext, company_id: str) -> Company:
    found = await ctx.company_loader.load(company_id)
    if found is None:
        raise NotFoundError(f"Company with id {company_id} not found")
    return found


# Fields

async def job_company(ctx: RequestContext, parent: Job) -> Optional[Company]:
    return await ctx.company_loader.load(parent.company_id)


def job_date(parent: Job) -> str:
    return parent.date


async def company_jobs(ctx: RequestContext, parent: Company) -> List[Job]:
    return await ctx.jobs_by_company_loader.load(parent.id)


# Mutations

def _require_company_id(ctx: RequestContext) -> str:
    if not ctx.auth:
        raise UnauthorisedError("Missing authentication")
    company_id = ctx.company_id
    if not company_id:
        raise UnauthorisedError("Access token has no company")
    return company_id


async def create_job(
    ctx: RequestContext,
    title: str,
    description: Optional[str] = None,
) -> Job:
    """Publish a job for the authenticated user's company."""
    company_id = _require_company_id(ctx)

    created = await ctx.database.create_job(
        company_id=company_id,
        title=title,
        description=description,
    )
    ctx.jobs_by_company_loader.clear(company_id)
    ctx.job_loader.clear(created.id).prime(created.id, created)
    return created


async def update_job(
    ctx: RequestContext,
    job_id: str,
    title: str,
    description: Optional[str] = None,
) -> Job:
    """Update a job belonging to the authenticated user's company."""
    company_id = _require_company_id(ctx)

    updated = await ctx.database.update_job(
        job_id=job_id,
        company_id=company_id,
        title=title,
        description=description,
    )
    if updated is None:
        raise NotFoundError(f"Job with id {job_id} not found")

    ctx.jobs_by_company_loader.clear(company_id)
    ctx.job_loader.clear(job_id).prime(job_id, updated)
    return updated


async def delete_job(ctx: RequestContext, job_id: str) -> Job:
    """Delete a job belonging to the authenticated user's company."""
    company_id = _require_company_id(ctx)

    deleted = await ctx.database.delete_job(job_id=job_id, company_id=company_id)
    if deleted is None:
        raise NotFoundError(f"Job with id {job_id} not found")

    ctx.jobs_by_company_loader.clear(company_id)
    ctx.job_loader.clear(job_id).prime(job_id, None)
    return deleted


# Selections

async def resolve_job(ctx: RequestContext, parent: Job) -> dict:
    """Resolve a job with its nested company, as a response would carry it."""
    found_company = await job_company(ctx, parent)
    return {
        "id": parent.id,
        "title": parent.title,
        "description": parent.description,
        "date": job_date(parent),
        "company": found_company.to_dict() if found_company else None,
    }


async def resolve_job_list(ctx: RequestContext, page: JobPage) -> dict:
    """
    Resolve every job of a page with its company.

    Sibling jobs are resolved concurrently so their company lookups share
    one batch.
    """
    items = await asyncio.gather(*[resolve_job(ctx, item) for item in page.items])
    logger.debug(
        "job_list_resolved",
        jobs=len(items),
        company_batches=ctx.company_loader.stats["batches_dispatched"],
    )
    return {"items": list(items), "total_count": page.total_count}


async def resolve_company(ctx: RequestContext, parent: Company) -> dict:
    """Resolve a company with its jobs."""
    company_job_list = await company_jobs(ctx, parent)
    return {
        **parent.to_dict(),
        "jobs": [
            {"id": j.id, "title": j.title, "date": job_date(j)}
            for j in company_job_list
        ],
    }
