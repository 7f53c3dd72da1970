# orderflow/api/routers/payments.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orderflow.api.deps import get_identity, get_lock_service, get_notifier, get_two_step_gateway, http_error
from orderflow.data.database import get_db
from orderflow.domain.errors import OrderflowError
from orderflow.domain.events import Purchaser
from orderflow.domain.schemas import CaptureOut, CaptureRequest, OrderCreatedOut, OrderRequest, ProviderOrderOut
from orderflow.services.capture_service import CaptureService
from orderflow.services.lock_service import LockService
from orderflow.services.notification_service import NotificationService
from orderflow.services.payments.port import TwoStepGateway
from orderflow.services.simulated_payment_service import SimulatedPaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/paypal/create-order", response_model=ProviderOrderOut)
def create_paypal_order(
    payload: OrderRequest,
    db: Session = Depends(get_db),
    gateway: TwoStepGateway = Depends(get_two_step_gateway),
):
    """Opens the provider order only. No local order is written here."""
    svc = CaptureService(db, gateway)
    try:
        return svc.create_order(payload)
    except OrderflowError as e:
        raise http_error(e)


@router.post("/paypal/capture", response_model=CaptureOut)
def capture_paypal_order(
    payload: CaptureRequest,
    identity: Purchaser = Depends(get_identity),
    db: Session = Depends(get_db),
    gateway: TwoStepGateway = Depends(get_two_step_gateway),
    notifier: NotificationService = Depends(get_notifier),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = CaptureService(db, gateway, notifier=notifier, lock_service=lock_service)
    try:
        return svc.capture(payload, identity)
    except OrderflowError as e:
        raise http_error(e)


@router.post("/test", response_model=OrderCreatedOut, response_model_exclude_none=True)
def test_payment(
    payload: OrderRequest,
    identity: Purchaser = Depends(get_identity),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    lock_service: LockService = Depends(get_lock_service),
):
    """Simulated payment: same commit pipeline, no provider."""
    svc = SimulatedPaymentService(db, notifier=notifier, lock_service=lock_service)
    try:
        return svc.pay(payload, identity)
    except OrderflowError as e:
        raise http_error(e)
