from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func

from adops.db.base import Base


class ParentCompany(Base):
    __tablename__ = "parent_companies"
    __table_args__ = (
        UniqueConstraint("account_id", "name", name="uq_parent_companies_account_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
