"""
Job board layer.

Domain types, per-request context (``jobboard.board.context``) and the
resolvers that read through the request loaders
(``jobboard.board.resolvers``).
"""

from jobboard.board.types import Company, Job, JobPage

__all__ = [
    "Company",
    "Job",
    "JobPage",
]
