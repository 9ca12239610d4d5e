from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, func, text
from sqlalchemy.dialects.postgresql import JSONB

from adops.db.base import Base
from adops.models.folder import NodeStatus


class File(Base):
    __tablename__ = "files"
    __table_args__ = (
        Index("uq_files_account_folder_original", "account_id", "folder_id", "original_filename", unique=True),
        Index(
            "uq_files_account_root_original",
            "account_id",
            "original_filename",
            unique=True,
            postgresql_where=text("folder_id IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    folder_id = Column(Integer, ForeignKey("folders.id", ondelete="CASCADE"), nullable=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    original_filename = Column(String(255), nullable=False)
    storage_key = Column(String(1024), nullable=False)
    storage_provider = Column(String(20), nullable=False, default="local")
    file_size = Column(BigInteger, nullable=True)
    content_type = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    allow_all_brands = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default=NodeStatus.ACTIVE.value, server_default="active")
    metadata_json = Column("metadata", JSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
