# orderflow/api/routers/orders.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orderflow.api.deps import get_identity, get_lock_service, get_notifier, http_error, require_admin
from orderflow.data.database import get_db
from orderflow.domain.errors import OrderflowError
from orderflow.domain.events import Purchaser
from orderflow.domain.schemas import (
    OrderCreatedOut,
    OrderDetailOut,
    OrderRequest,
    OrderStatusOut,
    OrderStatusUpdate,
)
from orderflow.services.lock_service import LockService
from orderflow.services.notification_service import NotificationService
from orderflow.services.order_service import OrderService
from orderflow.services.simulated_payment_service import SimulatedPaymentService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/create", response_model=OrderCreatedOut, response_model_exclude_none=True)
def create_order(
    payload: OrderRequest,
    identity: Purchaser = Depends(get_identity),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    lock_service: LockService = Depends(get_lock_service),
):
    """
    Order placed by the storefront with a declared payment method.
    Starts as pending.
    """
    svc = SimulatedPaymentService(db, notifier=notifier, lock_service=lock_service)
    try:
        return svc.place_direct_order(payload, identity)
    except OrderflowError as e:
        raise http_error(e)


@router.get("/{order_id}", response_model=OrderDetailOut)
def get_order(
    order_id: int,
    identity: Purchaser = Depends(get_identity),
    db: Session = Depends(get_db),
):
    svc = OrderService(db)
    try:
        return svc.get_order(order_id, identity)
    except OrderflowError as e:
        raise http_error(e)


@router.patch("/{order_id}", response_model=OrderStatusOut)
def update_order(
    order_id: int,
    payload: OrderStatusUpdate,
    admin: Purchaser = Depends(require_admin),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
):
    """Admin status / tracking update. Moving to shipped mails the customer once."""
    svc = OrderService(db, notifier=notifier)
    try:
        return svc.update_status(order_id, payload.model_dump(exclude_unset=True))
    except OrderflowError as e:
        raise http_error(e)
