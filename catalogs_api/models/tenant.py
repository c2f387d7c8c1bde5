from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from catalogs_api.core.database import Base


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    users = relationship("User", back_populates="tenant")
    catalogs = relationship("Catalog", back_populates="tenant")
