# orderflow/repos/order_repo.py
from typing import Any, Dict

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from orderflow.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items), selectinload(OrderModel.shipping_address))
            .where(OrderModel.id == order_id)
        ).scalar_one_or_none()

    def get_by_number(self, order_number: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.order_number == order_number)
        ).scalar_one_or_none()

    def get_by_reference(self, payment_method: str, reference: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(
                OrderModel.payment_method == payment_method,
                OrderModel.payment_reference == reference,
            )
        ).scalars().first()

    def add(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def update_status(self, order_id: int, old_status: str, new_data: Dict[str, Any]) -> int:
        # compare-and-set on the status the caller read
        stmt = (
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == old_status)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        res = self.db.execute(stmt)
        return res.rowcount

    def refresh(self, order: OrderModel) -> OrderModel:
        self.db.refresh(order)
        return order

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
