# orderflow/services/order_service.py
from contextlib import nullcontext
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from orderflow.data.models.order import OrderModel
from orderflow.data.models.order_item import OrderItemModel
from orderflow.domain.enums import PAID_STATUSES, TERMINAL_STATUSES, OrderStatus
from orderflow.domain.errors import (
    AuthenticationRequired,
    AuthorizationError,
    BestEffortFailure,
    ConflictError,
    NotFoundError,
    OrderflowError,
    OrderNumberConflict,
    PersistenceError,
    ValidationError,
)
from orderflow.domain.events import PaymentConfirmation, Purchaser
from orderflow.repos.discount_repo import DiscountRepo
from orderflow.repos.order_repo import OrderRepo
from orderflow.repos.product_repo import ProductRepo
from orderflow.services.inventory_service import InventoryService
from orderflow.services.lock_service import LockService
from orderflow.services.notification_service import NotificationService
from orderflow.services.order_numbers import generate_order_number
from orderflow.services.pricing_service import money
from orderflow.services.user_service import UserService
from orderflow.utils.logging import get_logger
from orderflow.utils.retry import regenerate_on_conflict
from orderflow.utils.settings import ORDER_NUMBER_ATTEMPTS

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommitResult:
    order: OrderModel
    created: bool
    failures: Tuple[BestEffortFailure, ...] = ()


def _now():
    return datetime.now(timezone.utc)


class OrderService:
    """
    The only writer of orders.

    commit() takes a PaymentConfirmation from any payment path and either
    creates the order (plus its best-effort side effects) or returns the
    order that already carries that number.
    """

    def __init__(
        self,
        db: Session,
        notifier: Optional[NotificationService] = None,
        lock_service: Optional[LockService] = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.discounts = DiscountRepo(db)
        self.users = UserService(db)
        self.inventory = InventoryService(db)
        self.notifier = notifier or NotificationService()
        self.lock_service = lock_service

    # commands
    def commit(self, confirmation: PaymentConfirmation) -> CommitResult:
        if not confirmation.items:
            raise ValidationError("Order must contain at least one item")
        if confirmation.total < 0:
            raise ValidationError("Order total cannot be negative")

        if confirmation.order_number_fixed:
            return self._commit_once(confirmation)

        event = confirmation
        try:
            for attempt in regenerate_on_conflict(ORDER_NUMBER_ATTEMPTS, OrderNumberConflict):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        event = replace(event, order_number=generate_order_number())
                        logger.warning(f"Order number collision, retrying as {event.order_number}")
                    result = self._commit_once(event)
        except OrderNumberConflict as e:
            raise PersistenceError(
                f"Could not allocate a unique order number after {ORDER_NUMBER_ATTEMPTS} attempts"
            ) from e
        return result

    def _commit_once(self, event: PaymentConfirmation) -> CommitResult:
        lock = self.lock_service.hold(event.order_number) if self.lock_service else nullcontext()
        with lock:
            existing = self.repo.get_by_number(event.order_number)
            if existing:
                if not event.order_number_fixed:
                    raise OrderNumberConflict(f"Order number {event.order_number} already taken")
                logger.info(f"Order {event.order_number} already exists, nothing to do")
                return CommitResult(order=existing, created=False)

            try:
                order = self._insert(event)
                self.repo.commit()
            except IntegrityError as e:
                self.repo.rollback()
                existing = self.repo.get_by_number(event.order_number)
                if existing and event.order_number_fixed:
                    logger.info(f"Order {event.order_number} was created concurrently, nothing to do")
                    return CommitResult(order=existing, created=False)
                if existing:
                    raise OrderNumberConflict(f"Order number {event.order_number} already taken") from e
                logger.error(f"Integrity error saving order {event.order_number}: {e}")
                raise PersistenceError("Failed to save order") from e
            except OrderflowError:
                self.repo.rollback()
                raise
            except SQLAlchemyError as e:
                self.repo.rollback()
                logger.error(f"Database error saving order {event.order_number}: {e}")
                raise PersistenceError("Failed to save order") from e

        logger.info(
            f"Order {order.order_number} created via {order.payment_method} "
            f"(status={order.status}, total={order.total} {order.currency})"
        )
        failures = self._after_commit(event, order)
        return CommitResult(order=order, created=True, failures=tuple(failures))

    def _insert(self, event: PaymentConfirmation) -> OrderModel:
        address = event.shipping_address
        user = self.users.resolve_purchaser(event.purchaser, address)
        snapshot = self.users.snapshot_address(user, address)

        total = money(event.total)
        if event.provider_amount is not None and money(event.provider_amount) != total:
            logger.warning(
                f"Order {event.order_number}: provider charged {money(event.provider_amount)}, "
                f"computed total is {total}"
            )

        known = self.products.existing_ids(i.product_id for i in event.items if i.product_id)

        order = OrderModel(
            order_number=event.order_number,
            user_id=user.id,
            customer_email=address.email or user.email,
            customer_name=address.name or user.name,
            status=event.initial_status.value,
            subtotal=money(event.subtotal),
            shipping=money(event.shipping),
            tax=money(event.tax),
            discount=money(event.discount),
            total=total,
            currency=event.currency,
            payment_method=event.payment_method,
            payment_reference=event.provider_reference,
            discount_code=event.discount_code,
            shipping_method=event.shipping_method,
            shipping_address_id=snapshot.id,
            paid_at=_now() if event.paid else None,
        )
        order.items = [
            OrderItemModel(
                product_id=i.product_id if i.product_id in known else None,
                name=i.name,
                price=money(i.price),
                quantity=i.quantity,
                size=i.size or None,
                color=i.color or None,
            )
            for i in event.items
        ]
        return self.repo.add(order)

    def _after_commit(self, event: PaymentConfirmation, order: OrderModel):
        # each step isolated, none of them may undo the order
        failures = self.inventory.adjust_for_order(order.order_number, event.items)

        if event.discount_code:
            code = event.discount_code.strip().upper()
            try:
                touched = self.discounts.increment_usage(code)
                self.discounts.commit()
                if touched:
                    logger.info(f"Discount {code} usage incremented (order {order.order_number})")
                else:
                    logger.warning(f"Discount {code} missing or exhausted, usage not incremented")
            except Exception as e:
                self.discounts.rollback()
                failure = BestEffortFailure(f"discount[{code}]", order.order_number, e)
                logger.error(failure.message)
                failures.append(failure)

        try:
            self.notifier.send_order_confirmation(order)
        except Exception as e:
            failure = BestEffortFailure("notification", order.order_number, e)
            logger.error(failure.message)
            failures.append(failure)

        return failures

    def update_status(self, order_id: int, changes: Dict[str, Any]) -> OrderModel:
        """
        Admin overwrite of status / tracking_number / shipping_method.

        Keys absent from ``changes`` are left alone. The write is a
        compare-and-set on the status we read, so of two concurrent updates
        only one wins and the shipped mail goes out once.
        """
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")

        previous = order.status
        values: Dict[str, Any] = {}

        new_status = changes.get("status")
        if new_status is not None:
            try:
                target = OrderStatus(new_status)
            except ValueError:
                valid = ", ".join(s.value for s in OrderStatus)
                raise ValidationError(f"Invalid status. Must be one of: {valid}")

            if target.value != previous and OrderStatus(previous) in TERMINAL_STATUSES:
                raise ValidationError(f"Order is {previous} and can no longer change status")

            values["status"] = target.value
            if target in PAID_STATUSES and order.paid_at is None:
                values["paid_at"] = _now()

        for key in ("tracking_number", "shipping_method"):
            if key in changes:
                values[key] = changes[key]

        if not values:
            return order

        rowcount = self.repo.update_status(order.id, previous, values)
        if rowcount == 0:
            self.repo.rollback()
            raise ConflictError("Order was modified by another request, reload and retry")
        self.repo.commit()
        order = self.repo.refresh(order)

        logger.info(f"Order {order.order_number} updated: {previous} -> {order.status}")

        if order.status == OrderStatus.SHIPPED.value and previous != OrderStatus.SHIPPED.value:
            try:
                self.notifier.send_shipping_update(order)
            except Exception as e:
                logger.error(BestEffortFailure("shipping notification", order.order_number, e).message)

        return order

    # queries
    def get_order(self, order_id: int, viewer: Purchaser) -> OrderModel:
        if not viewer.authenticated:
            raise AuthenticationRequired("Unauthorized")

        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")

        if viewer.is_admin:
            return order
        owns = (viewer.user_id is not None and order.user_id == viewer.user_id) or (
            viewer.email and order.customer_email and viewer.email.lower() == order.customer_email.lower()
        )
        if not owns:
            raise AuthorizationError("Forbidden")
        return order
