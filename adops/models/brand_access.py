from sqlalchemy import Column, DateTime, ForeignKey, Integer, func

from adops.db.base import Base


class FolderBrandAccess(Base):
    __tablename__ = "folder_brand_access"

    folder_id = Column(Integer, ForeignKey("folders.id", ondelete="CASCADE"), primary_key=True)
    brand_id = Column(Integer, ForeignKey("brands.id", ondelete="CASCADE"), primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class FileBrandAccess(Base):
    __tablename__ = "file_brand_access"

    file_id = Column(Integer, ForeignKey("files.id", ondelete="CASCADE"), primary_key=True)
    brand_id = Column(Integer, ForeignKey("brands.id", ondelete="CASCADE"), primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
