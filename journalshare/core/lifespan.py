"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (document store, change
subscriptions).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from journalshare.application.dtos.results import InventoryWriteEvent
from journalshare.application.services.details_validator import DetailsValidator
from journalshare.application.use_cases.cache.inventory_cache import InventoryCacheUpdater
from journalshare.core.config import get_settings
from journalshare.core.constants import INVENTORY_TRIGGER_PATTERN
from journalshare.infrastructure.firebase import close_firebase, init_firebase
from journalshare.infrastructure.memory import DocumentChange, InMemoryDocumentStore
from journalshare.shared.logging import setup_logging

logger = logging.getLogger(__name__)


def subscribe_inventory_cache(store: InMemoryDocumentStore) -> None:
    """Deliver inventory item writes to the cache updater (in-process change subscription)."""
    updater = InventoryCacheUpdater(store, DetailsValidator())

    async def on_inventory_write(change: DocumentChange) -> None:
        await updater.handle(
            InventoryWriteEvent(
                journal_id=change.params["journalId"],
                item_id=change.params["itemId"],
                before=change.before,
                after=change.after,
            )
        )

    store.on_write(INVENTORY_TRIGGER_PATTERN, on_inventory_write)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup: logging, then the document store for the configured backend.
    With Firestore, inventory writes reach the cache updater through
    POST /triggers/inventory; with the memory store, through an in-process
    subscription. Shutdown closes the store.
    """
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    if settings.database_backend == "memory":
        store = InMemoryDocumentStore(max_attempts=settings.transaction_max_attempts)
        subscribe_inventory_cache(store)
        logger.info("Using in-memory document store")
    else:
        store = init_firebase(settings)
        if store is None:
            logger.error("Firestore is not configured; store-backed routes will return 503")
    app.state.store = store

    yield

    # ---- Shutdown ----
    if isinstance(store, InMemoryDocumentStore):
        await store.aclose()
    else:
        await close_firebase(store)
    app.state.store = None
