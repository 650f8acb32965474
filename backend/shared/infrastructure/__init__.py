"""
Infrastructure module: Database sessions and request correlation.

Provides:
- Database sessions and transactions (db.py)
- X-Request-ID propagation into log records (correlation.py)
"""

from shared.infrastructure.db import (
    engine,
    SessionLocal,
    get_db,
    safe_commit,
)
from shared.infrastructure.correlation import (
    CorrelationIdMiddleware,
    bind_actor,
    get_request_id,
)

__all__ = [
    # db
    "engine",
    "SessionLocal",
    "get_db",
    "safe_commit",
    # correlation
    "CorrelationIdMiddleware",
    "bind_actor",
    "get_request_id",
]
