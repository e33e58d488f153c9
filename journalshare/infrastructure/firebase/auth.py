"""Firebase ID token verification with google-auth.

Tokens are verified against Google's public certificates for the
configured project; verification is blocking (certificate fetch) and is
run in a worker thread by the caller.
"""

import logging
from typing import Any

import google.auth.transport.requests
from google.oauth2 import id_token

from journalshare.domain.exceptions import AuthenticationException

logger = logging.getLogger(__name__)

_request = google.auth.transport.requests.Request()


def verify_id_token(token: str, project_id: str) -> dict[str, Any]:
    """Return verified claims for a Firebase ID token.

    Raises:
        AuthenticationException: token expired, malformed or issued for another project.
    """
    try:
        claims = id_token.verify_firebase_token(token, _request, audience=project_id)
    except ValueError as e:
        logger.info("Rejected Firebase ID token: %s", e)
        raise AuthenticationException("Invalid or expired ID token") from e
    if not claims:
        raise AuthenticationException("Invalid or expired ID token")
    return claims
