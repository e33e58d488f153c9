"""Application services (authorization, detail validation, audit)."""

from journalshare.application.services.audit_service import AuditService
from journalshare.application.services.authorization_service import (
    AuthorizationService,
    RolePolicy,
)
from journalshare.application.services.details_validator import DetailsValidator

__all__ = ["AuditService", "AuthorizationService", "DetailsValidator", "RolePolicy"]
