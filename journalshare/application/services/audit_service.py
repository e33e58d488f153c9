"""Audit service: records journal-level calls in journals/{journalId}/events."""

from __future__ import annotations

import logging
from typing import Any

from journalshare.application.interfaces.store import IDocumentStore
from journalshare.core.constants import COLLECTION_JOURNALS, SUBCOLLECTION_EVENTS
from journalshare.shared.field_values import SERVER_TIMESTAMP

logger = logging.getLogger(__name__)


class AuditService:
    """Writes one event per successful call, after the call's own writes committed.

    Audit writes are best effort: a failure is logged and the call still succeeds.
    """

    def __init__(self, store: IDocumentStore) -> None:
        self.store = store

    async def record_call(
        self,
        journal_id: str,
        function_name: str,
        user_id: str,
        call_input: dict[str, Any],
    ) -> None:
        event = {
            "type": f"FUNCTION_CALL_{function_name.upper()}",
            "userId": user_id,
            "timestamp": SERVER_TIMESTAMP,
            "details": {"input": call_input},
        }
        try:
            await (
                self.store.collection(COLLECTION_JOURNALS)
                .document(journal_id)
                .collection(SUBCOLLECTION_EVENTS)
                .document()
                .set(event)
            )
        except Exception:
            logger.warning(
                "Failed to record audit event %s for journal %s",
                event["type"],
                journal_id,
                exc_info=True,
            )
