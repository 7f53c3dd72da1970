# orderflow/services/user_service.py
from sqlalchemy.orm import Session

from orderflow.data.models.address import AddressModel
from orderflow.data.models.user import UserModel
from orderflow.domain.enums import AccountKind
from orderflow.domain.errors import ValidationError
from orderflow.domain.events import Purchaser, ShippingAddress
from orderflow.repos.user_repo import UserRepo
from orderflow.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def resolve_purchaser(self, purchaser: Purchaser, address: ShippingAddress) -> UserModel:
        """
        Owner of a new order. Order of preference:
        the session user if that row still exists, then the session email,
        then the shipping email as a guest (created on first use).
        Runs inside the caller's transaction; nothing is committed here.
        """
        if purchaser.user_id is not None:
            user = self.repo.get_user(purchaser.user_id)
            if user:
                return user
            logger.warning(f"Session user {purchaser.user_id} no longer exists, falling back to email")

        email = (purchaser.email or address.email or "").strip().lower()
        if not email:
            raise ValidationError("Customer email is required")

        user = self.repo.get_by_email(email)
        if user:
            return user

        logger.info(f"Creating guest user for {email}")
        return self.repo.add_user(
            UserModel(
                email=email,
                name=purchaser.name or address.name,
                account_kind=AccountKind.GUEST.value,
                password_hash=None,
            )
        )

    def snapshot_address(self, user: UserModel, address: ShippingAddress) -> AddressModel:
        # a fresh row per order, later profile edits never touch it
        return self.repo.add_address(
            AddressModel(
                user_id=user.id,
                full_name=address.name,
                street=address.street,
                apartment=address.apartment,
                city=address.city,
                province=address.province,
                postal_code=address.postal_code,
                country=address.country,
                phone=address.phone,
            )
        )
