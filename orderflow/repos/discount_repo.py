# orderflow/repos/discount_repo.py
from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from orderflow.data.models.discount_code import DiscountCodeModel


class DiscountRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, code: str) -> DiscountCodeModel | None:
        return self.db.execute(
            select(DiscountCodeModel).where(DiscountCodeModel.code == code)
        ).scalar_one_or_none()

    def increment_usage(self, code: str) -> int:
        """
        Single conditional UPDATE, so used_count can never pass usage_limit
        no matter how many commits race on the same code.
        Returns the number of rows touched (0 when missing or exhausted).
        """
        stmt = (
            update(DiscountCodeModel)
            .where(
                DiscountCodeModel.code == code,
                or_(
                    DiscountCodeModel.usage_limit.is_(None),
                    DiscountCodeModel.used_count < DiscountCodeModel.usage_limit,
                ),
            )
            .values(used_count=DiscountCodeModel.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        res = self.db.execute(stmt)
        return res.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
