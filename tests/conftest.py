"""Pytest configuration and fixtures for journalshare.

Tests run against the in-memory document store. Environment is set before
the app is imported so Settings validation sees the memory backend.
"""

import os

os.environ["DATABASE_BACKEND"] = "memory"
os.environ["TRIGGER_SECRET"] = "test-trigger-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from journalshare.api.v1.dependencies import get_current_principal  # noqa: E402
from journalshare.application.dtos.principal import Principal  # noqa: E402
from journalshare.application.services.audit_service import AuditService  # noqa: E402
from journalshare.application.services.authorization_service import (  # noqa: E402
    AuthorizationService,
    RolePolicy,
)
from journalshare.application.services.details_validator import DetailsValidator  # noqa: E402
from journalshare.application.use_cases.cache.inventory_cache import (  # noqa: E402
    InventoryCacheUpdater,
)
from journalshare.application.use_cases.entries.entry_service import EntryService  # noqa: E402
from journalshare.application.use_cases.journals.journal_service import (  # noqa: E402
    JournalService,
)
from journalshare.application.use_cases.sharing.sharing_service import (  # noqa: E402
    SharingService,
)
from journalshare.core.config import Settings, get_settings  # noqa: E402
from journalshare.core.lifespan import subscribe_inventory_cache  # noqa: E402
from journalshare.domain.exceptions import AuthenticationException  # noqa: E402
from journalshare.infrastructure.memory import InMemoryDocumentStore  # noqa: E402

get_settings.cache_clear()

TRIGGER_SECRET = os.environ["TRIGGER_SECRET"]

ALICE = Principal(
    uid="U1", email="alice@x.com", email_verified=True, display_name="Alice", photo_url=None
)
BOB = Principal(
    uid="U2", email="bob@x.com", email_verified=True, display_name="Bob", photo_url=None
)
CAROL = Principal(uid="U3", email="carol@x.com", email_verified=True, display_name="Carol")

CONTACT = {
    "name": "Acme Ltd",
    "email": "ops@acme.com",
    "phone": "+1 555 123 4567",
    "address": {
        "street": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "zipCode": "62701",
    },
}

BUSINESS_DETAILS = {"currency": "USD", "contactInfo": CONTACT, "logo": None}

INVENTORY_DETAILS = {
    "description": "Widget",
    "unitPrice": 9.99,
    "dimensions": {"type": "unit", "unitLabel": "unit"},
    "currency": "USD",
}

CASHFLOW_DETAILS = {
    "description": "Invoice payment",
    "date": "2024-05-01T10:00:00Z",
    "type": "received",
    "value": 120.5,
    "currency": "USD",
}

ESTIMATE_DETAILS = {
    "confirmedItems": [
        {
            "id": "li1",
            "parentId": "mat1",
            "quantity": 2,
            "description": "Tile install",
            "material": INVENTORY_DETAILS,
        }
    ],
    "status": "accepted",
    "customer": CONTACT,
    "supplier": CONTACT,
    "logo": None,
    "adjustments": [{"type": "taxPercent", "value": 5, "description": "Sales tax"}],
    "taxPercentage": 5,
    "currency": "USD",
}


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(max_attempts=5)


@pytest.fixture
def authorization(settings: Settings) -> AuthorizationService:
    return AuthorizationService(RolePolicy.from_settings(settings))


@pytest.fixture
def validator() -> DetailsValidator:
    return DetailsValidator()


@pytest.fixture
def journal_service(store, authorization, validator) -> JournalService:
    return JournalService(store, authorization, validator, AuditService(store))


@pytest.fixture
def sharing_service(store, authorization) -> SharingService:
    return SharingService(store, authorization)


@pytest.fixture
def entry_service(store, authorization, validator) -> EntryService:
    return EntryService(store, authorization, validator)


@pytest.fixture
def cache_updater(store, validator) -> InventoryCacheUpdater:
    return InventoryCacheUpdater(store, validator)


@pytest.fixture
async def journal_id(journal_service: JournalService) -> str:
    """Business journal owned by ALICE (sole admin)."""
    return await journal_service.create_journal(ALICE, "Acme", "business", BUSINESS_DETAILS)


async def add_member(
    sharing: SharingService, journal_id: str, principal: Principal, role: str
) -> None:
    """ALICE invites principal's email with role; principal accepts."""
    await sharing.invite(ALICE, journal_id, principal.email, role)
    await sharing.accept_share(principal, journal_id, "accept")


async def read_journal(store: InMemoryDocumentStore, journal_id: str) -> dict:
    snapshot = await store.document(f"journals/{journal_id}").get()
    assert snapshot is not None
    return snapshot.to_dict()


class PrincipalSwitch:
    """Mutable current principal for API tests."""

    def __init__(self) -> None:
        self.principal: Principal | None = ALICE

    def __call__(self) -> Principal:
        if self.principal is None:
            raise AuthenticationException()
        return self.principal


@pytest.fixture
def as_user() -> PrincipalSwitch:
    return PrincipalSwitch()


@pytest.fixture
async def api_store() -> InMemoryDocumentStore:
    """Store used by the ASGI app, with the inventory cache subscription wired."""
    store = InMemoryDocumentStore(max_attempts=5)
    subscribe_inventory_cache(store)
    yield store
    await store.aclose()


@pytest.fixture
def app(api_store: InMemoryDocumentStore, as_user: PrincipalSwitch):
    """Fresh app on api_store; the principal comes from as_user instead of an ID token."""
    from journalshare.main import create_app

    app = create_app()
    app.state.store = api_store
    app.dependency_overrides[get_current_principal] = as_user
    return app


@pytest.fixture
async def client(app) -> AsyncClient:
    """Async HTTP client against the app (ASGI), authenticated as ALICE by default."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
