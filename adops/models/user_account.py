from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func

from adops.db.base import Base


class UserType(str, Enum):
    PUBLISHER = "PUBLISHER"
    ADVERTISER = "ADVERTISER"


class RoleType(str, Enum):
    ADMIN = "ADMIN"
    OPERATOR = "OPERATOR"


class UserAccount(Base):
    """Membership of a user in an account."""

    __tablename__ = "user_accounts"
    __table_args__ = (
        UniqueConstraint("user_id", "account_id", name="uq_user_accounts_user_account"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    role_type = Column(String(50), nullable=False, default=RoleType.OPERATOR.value)
    user_type = Column(String(20), nullable=False, default=UserType.PUBLISHER.value)
    allow_all_brands = Column(Boolean, nullable=False, default=False)
    active = Column(Boolean, nullable=False, default=True)
    timezone_name = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
