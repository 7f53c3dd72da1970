# orderflow/api/deps.py
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException

from orderflow.domain.errors import OrderflowError
from orderflow.domain.events import Purchaser
from orderflow.services import payments
from orderflow.services.lock_service import LockService
from orderflow.services.notification_service import NotificationService
from orderflow.services.payments.port import HostedCheckoutGateway, TwoStepGateway


def http_error(e: OrderflowError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


def get_identity(
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Purchaser:
    """Identity forwarded by the upstream auth gateway; anonymous when absent."""
    user_id = int(x_user_id) if x_user_id and x_user_id.strip().isdigit() else None
    return Purchaser(
        user_id=user_id,
        email=x_user_email or None,
        name=x_user_name or None,
        role=(x_user_role or "customer").lower(),
    )


def require_admin(identity: Purchaser = Depends(get_identity)) -> Purchaser:
    if not identity.authenticated:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not identity.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden")
    return identity


def get_notifier() -> NotificationService:
    return NotificationService()


@lru_cache
def get_lock_service() -> LockService:
    return LockService()


def get_hosted_gateway() -> HostedCheckoutGateway:
    return payments.get_hosted_gateway()


def get_two_step_gateway() -> TwoStepGateway:
    return payments.get_two_step_gateway()
