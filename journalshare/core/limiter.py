"""Rate limiter instance for SlowAPI.

Shared so both main (app.state.limiter) and route modules can use the same
instance without circular imports. Central limit strings and decorators
keep rate limits DRY.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Enabled or disabled from settings in create_app().
limiter = Limiter(key_func=get_remote_address)

# Single source of truth for rate limit strings and decorators.
CREATE_JOURNAL_LIMIT = "10/minute"
WRITE_ENDPOINT_LIMIT = "120/minute"

limit_create_journal = limiter.limit(CREATE_JOURNAL_LIMIT)
limit_writes = limiter.limit(WRITE_ENDPOINT_LIMIT)
