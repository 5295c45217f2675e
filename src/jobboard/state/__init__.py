"""
State Management module.

Handles persistence of companies and jobs.
"""

from jobboard.state.database import Database, init_database

__all__ = [
    "Database",
    "init_database",
]
