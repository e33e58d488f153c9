"""HTTP middleware: timeout and request ID.

Applied in main app; order matters (first added = outermost).
"""

from journalshare.middleware.request_id import RequestIDMiddleware
from journalshare.middleware.timeout import TimeoutMiddleware

__all__ = ["RequestIDMiddleware", "TimeoutMiddleware"]
