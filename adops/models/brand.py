from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB

from adops.db.base import Base


class Brand(Base):
    __tablename__ = "brands"
    __table_args__ = (
        UniqueConstraint("account_id", "name", name="uq_brands_account_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_company_id = Column(
        Integer, ForeignKey("parent_companies.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=True)
    asset_url = Column(String(1024), nullable=True)
    status = Column(String(20), nullable=False, default="active", server_default="active")
    publisher_share_perc = Column(Numeric(5, 2), nullable=True)
    allow_all_products = Column(Boolean, nullable=False, default=False)
    custom_id = Column(String(100), nullable=True)
    metadata_json = Column("metadata", JSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
