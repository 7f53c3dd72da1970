# orderflow/services/notification_service.py
import smtplib
from email.message import EmailMessage
from typing import Any, Dict

from orderflow.celery_worker import celery_app
from orderflow.data.models.order import OrderModel
from orderflow.utils.logging import get_logger
from orderflow.utils.settings import SMTP_FROM, SMTP_HOST, SMTP_PASS, SMTP_PORT, SMTP_USER, STORE_CURRENCY

logger = get_logger(__name__)


def order_payload(order: OrderModel) -> Dict[str, Any]:
    """Plain, JSON-serializable snapshot handed to the worker."""
    return {
        "order_number": order.order_number,
        "email": order.customer_email,
        "name": order.customer_name,
        "status": order.status,
        "total": str(order.total),
        "currency": order.currency or STORE_CURRENCY,
        "tracking_number": order.tracking_number,
        "shipping_method": order.shipping_method,
        "items": [
            {"name": i.name, "quantity": i.quantity, "price": str(i.price), "size": i.size, "color": i.color}
            for i in order.items
        ],
    }


class NotificationService:
    """
    Fire-and-forget customer notifications.

    The request path only enqueues; delivery and its retries happen in the
    Celery worker.
    """

    def send_order_confirmation(self, order: OrderModel):
        send_order_confirmation_task.delay(order_payload(order))

    def send_shipping_update(self, order: OrderModel):
        send_shipping_update_task.delay(order_payload(order))


def _deliver(to: str | None, subject: str, body: str) -> str:
    if not to:
        logger.warning(f"[NOTIFICATION] no recipient for '{subject}', skipping")
        return "skipped"

    if not SMTP_HOST:
        logger.info(f"[NOTIFICATION] (smtp not configured) to={to} subject='{subject}'")
        return "logged"

    msg = EmailMessage()
    msg["From"] = SMTP_FROM or SMTP_USER
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(body)

    with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=10) as smtp:
        smtp.starttls()
        if SMTP_USER:
            smtp.login(SMTP_USER, SMTP_PASS)
        smtp.send_message(msg)

    logger.info(f"[NOTIFICATION] sent '{subject}' to {to}")
    return "sent"


def _lines(payload: Dict[str, Any]) -> str:
    rows = []
    for i in payload.get("items", []):
        variant = " / ".join(v for v in (i.get("size"), i.get("color")) if v)
        suffix = f" ({variant})" if variant else ""
        rows.append(f"  {i['quantity']} x {i['name']}{suffix}  {i['price']} {payload['currency']}")
    return "\n".join(rows)


@celery_app.task(
    name="orderflow.services.notification_service.send_order_confirmation_task",
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
    retry_kwargs={"max_retries": 5},
)
def send_order_confirmation_task(payload: Dict[str, Any]):
    number = payload["order_number"]
    body = (
        f"Hi {payload.get('name') or 'there'},\n\n"
        f"Thank you for your order {number}.\n\n"
        f"{_lines(payload)}\n\n"
        f"Total: {payload['total']} {payload['currency']}\n"
    )
    status = _deliver(payload.get("email"), f"Order confirmation {number}", body)
    return {"order_number": number, "status": status}


@celery_app.task(
    name="orderflow.services.notification_service.send_shipping_update_task",
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
    retry_kwargs={"max_retries": 5},
)
def send_shipping_update_task(payload: Dict[str, Any]):
    number = payload["order_number"]
    tracking = payload.get("tracking_number")
    body = (
        f"Hi {payload.get('name') or 'there'},\n\n"
        f"Your order {number} has shipped"
        + (f" via {payload['shipping_method']}" if payload.get("shipping_method") else "")
        + ".\n"
        + (f"Tracking number: {tracking}\n" if tracking else "")
    )
    status = _deliver(payload.get("email"), f"Your order {number} has shipped", body)
    return {"order_number": number, "status": status}
