from sqlalchemy.orm import Session

from app.models.user import User

# Sentinel for "leave the column as it is" in update_subscription
_UNSET = object()


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def create_user(self, username: str, password_hash: str, email: str | None = None) -> User:
        user = User(username=username, password_hash=password_hash, email=email)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def get(self, user_id: str) -> User | None:
        return self.db.query(User).filter(User.id == user_id).one_or_none()

    def get_by_username(self, username: str) -> User | None:
        return self.db.query(User).filter(User.username == username).one_or_none()

    def get_by_billing_customer_ref(self, customer_ref: str) -> User | None:
        return self.db.query(User).filter(User.billing_customer_ref == customer_ref).first()

    def update_subscription(
        self,
        user: User,
        *,
        is_pro: bool,
        subscription_status: str | None,
        billing_customer_ref=_UNSET,
        billing_subscription_ref=_UNSET,
    ) -> User:
        """Absolute write of the entitlement fields; refs are only touched when passed."""
        user.is_pro = is_pro
        user.subscription_status = subscription_status
        if billing_customer_ref is not _UNSET:
            user.billing_customer_ref = billing_customer_ref
        if billing_subscription_ref is not _UNSET:
            user.billing_subscription_ref = billing_subscription_ref
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
