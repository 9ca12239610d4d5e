from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint, func

from adops.db.base import Base


class UserAccountBrand(Base):
    """One explicit brand grant on a membership."""

    __tablename__ = "user_account_brands"
    __table_args__ = (
        UniqueConstraint("user_brand_access_id", "brand_id", name="uq_user_account_brands_membership_brand"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_brand_access_id = Column(
        Integer, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    brand_id = Column(Integer, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
