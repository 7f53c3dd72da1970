# orderflow/api/routers/checkout.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orderflow.api.deps import get_hosted_gateway, get_identity, http_error
from orderflow.data.database import get_db
from orderflow.domain.errors import OrderflowError
from orderflow.domain.events import Purchaser
from orderflow.domain.schemas import CheckoutSessionOut, OrderRequest, QuoteIn, QuoteOut
from orderflow.services.hosted_checkout_service import HostedCheckoutService
from orderflow.services.payments.port import HostedCheckoutGateway
from orderflow.services.quote_service import QuoteService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("/quote", response_model=QuoteOut)
def quote(payload: QuoteIn, db: Session = Depends(get_db)):
    svc = QuoteService(db)
    try:
        return svc.quote(payload)
    except OrderflowError as e:
        raise http_error(e)


@router.post("/session", response_model=CheckoutSessionOut)
def create_session(
    payload: OrderRequest,
    identity: Purchaser = Depends(get_identity),
    db: Session = Depends(get_db),
    gateway: HostedCheckoutGateway = Depends(get_hosted_gateway),
):
    svc = HostedCheckoutService(db, gateway)
    try:
        return svc.create_session(payload, identity)
    except OrderflowError as e:
        raise http_error(e)
