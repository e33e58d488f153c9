"""Store change triggers: inventory writes delivered by the hosted event pipeline.

Protected by a shared secret header instead of user auth:
- Settings must define TRIGGER_SECRET (503 otherwise).
- Requests must send X-Trigger-Secret matching that value.
"""

import hmac

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from journalshare.api.v1.dependencies import get_inventory_cache_updater
from journalshare.application.dtos.results import InventoryWriteEvent
from journalshare.application.use_cases.cache.inventory_cache import InventoryCacheUpdater
from journalshare.core.config import get_settings
from journalshare.schemas.trigger import InventoryTriggerRequest
from journalshare.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

TRIGGER_SECRET_HEADER = "X-Trigger-Secret"


def require_trigger_secret(request: Request) -> None:
    settings = get_settings()
    if not settings.trigger_secret:
        raise HTTPException(
            status_code=503,
            detail="Triggers are not configured (TRIGGER_SECRET is not set).",
        )
    header_secret = request.headers.get(TRIGGER_SECRET_HEADER) or ""
    expected = settings.trigger_secret.get_secret_value()
    if not hmac.compare_digest(header_secret.encode(), expected.encode()):
        logger.warning("Rejected trigger call with missing or wrong secret")
        raise HTTPException(status_code=401, detail="Unauthorized trigger call")


@router.post("/inventory", status_code=204, dependencies=[Depends(require_trigger_secret)])
async def inventory_written(
    body: InventoryTriggerRequest,
    updater: InventoryCacheUpdater = Depends(get_inventory_cache_updater),
) -> Response:
    """Apply one inventory item write to the parent journal's cache.

    Always 204 once authenticated: failures are logged by the updater, and
    the event pipeline must not retry an invalid document forever.
    """
    await updater.handle(
        InventoryWriteEvent(
            journal_id=body.journal_id,
            item_id=body.item_id,
            before=body.before,
            after=body.after,
        )
    )
    return Response(status_code=204)
