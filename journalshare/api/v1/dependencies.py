"""FastAPI dependencies (composition root).

The document store lives on app.state (set by the lifespan); services are
built per request around it, so tests can swap the store or the principal
through app.dependency_overrides.
"""

from __future__ import annotations

import asyncio

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from journalshare.application.dtos.principal import Principal
from journalshare.application.interfaces.store import IDocumentStore
from journalshare.application.services.audit_service import AuditService
from journalshare.application.services.authorization_service import (
    AuthorizationService,
    RolePolicy,
)
from journalshare.application.services.details_validator import DetailsValidator
from journalshare.application.use_cases.cache.inventory_cache import InventoryCacheUpdater
from journalshare.application.use_cases.entries.entry_service import EntryService
from journalshare.application.use_cases.journals.journal_service import JournalService
from journalshare.application.use_cases.sharing.sharing_service import SharingService
from journalshare.core.config import Settings, get_settings
from journalshare.domain.exceptions import AuthenticationException
from journalshare.infrastructure.exceptions import StoreUnavailableException
from journalshare.infrastructure.firebase.auth import verify_id_token

_bearer = HTTPBearer(auto_error=False)


def get_store(request: Request) -> IDocumentStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise StoreUnavailableException("Document store is not configured")
    return store


def _project_id(request: Request, settings: Settings) -> str:
    if settings.firebase_project_id:
        return settings.firebase_project_id
    project_id = getattr(getattr(request.app.state, "store", None), "project_id", None)
    if not project_id:
        raise AuthenticationException("ID token verification is not configured")
    return project_id


async def get_current_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_settings),
) -> Principal:
    """Verified caller identity from the Firebase ID token in the Authorization header."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationException()
    claims = await asyncio.to_thread(
        verify_id_token, credentials.credentials, _project_id(request, settings)
    )
    return Principal.from_claims(claims)


def get_authorization_service(settings: Settings = Depends(get_settings)) -> AuthorizationService:
    return AuthorizationService(RolePolicy.from_settings(settings))


def get_details_validator() -> DetailsValidator:
    return DetailsValidator()


def get_journal_service(
    store: IDocumentStore = Depends(get_store),
    authorization: AuthorizationService = Depends(get_authorization_service),
    validator: DetailsValidator = Depends(get_details_validator),
) -> JournalService:
    return JournalService(store, authorization, validator, AuditService(store))


def get_sharing_service(
    store: IDocumentStore = Depends(get_store),
    authorization: AuthorizationService = Depends(get_authorization_service),
) -> SharingService:
    return SharingService(store, authorization)


def get_entry_service(
    store: IDocumentStore = Depends(get_store),
    authorization: AuthorizationService = Depends(get_authorization_service),
    validator: DetailsValidator = Depends(get_details_validator),
) -> EntryService:
    return EntryService(store, authorization, validator)


def get_inventory_cache_updater(
    store: IDocumentStore = Depends(get_store),
    validator: DetailsValidator = Depends(get_details_validator),
) -> InventoryCacheUpdater:
    return InventoryCacheUpdater(store, validator)
