# orderflow/api/routers/webhooks.py
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from orderflow.api.deps import get_hosted_gateway, get_lock_service, get_notifier, http_error
from orderflow.data.database import get_db
from orderflow.domain.errors import OrderflowError
from orderflow.domain.schemas import WebhookAck
from orderflow.services.hosted_checkout_service import HostedCheckoutService
from orderflow.services.lock_service import LockService
from orderflow.services.notification_service import NotificationService
from orderflow.services.payments.port import HostedCheckoutGateway
from orderflow.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/stripe", tags=["webhooks"])


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    gateway: HostedCheckoutGateway = Depends(get_hosted_gateway),
    notifier: NotificationService = Depends(get_notifier),
    lock_service: LockService = Depends(get_lock_service),
):
    """
    The body is read raw: the signature covers the exact bytes.
    200 also for duplicates and ignored event types, so the provider stops retrying.
    """
    payload = await request.body()
    svc = HostedCheckoutService(db, gateway, notifier=notifier, lock_service=lock_service)
    try:
        await run_in_threadpool(svc.handle_webhook, payload, stripe_signature)
    except OrderflowError as e:
        logger.warning(f"[STRIPE WEBHOOK] rejected ({e.status_code}): {e.message}")
        raise http_error(e)
    return {"received": True}
