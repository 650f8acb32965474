"""
Shared module for common utilities of the REST API.

STRUCTURE:
- shared.security: Actor identity
  - auth.py: JWT verification, current_actor_id dependency

- shared.infrastructure: Database and request plumbing
  - db.py: Async SQLAlchemy sessions, safe_commit()
  - correlation.py: X-Request-ID middleware and log filter

- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging
  - constants.py: Audit field names, query parameter names

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - validators.py: LIKE escaping, boolean parsing
  - schemas.py: Shared Pydantic schemas

IMPORT EXAMPLES:
    from shared.security.auth import current_actor_id
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import AuditFields, NO_ACTOR
    from shared.utils.exceptions import NotFoundError, ConcurrencyConflictError
"""

# This module provides no re-exports.
# All imports should use the canonical paths as documented above.
