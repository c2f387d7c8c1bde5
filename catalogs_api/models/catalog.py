import enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import relationship

from catalogs_api.core.database import Base


class Vertical(str, enum.Enum):
    FASHION = "fashion"
    HOME = "home"
    GENERAL = "general"


class Catalog(Base):
    __tablename__ = "catalogs"
    __table_args__ = (
        UniqueConstraint("name", name="uq_catalogs_name"),
        # At most one primary catalog per (tenant, vertical), enforced by the store.
        Index(
            "uq_catalogs_tenant_vertical_primary",
            "tenant_id",
            "vertical",
            unique=True,
            sqlite_where=text("is_primary"),
            postgresql_where=text("is_primary"),
        ),
    )

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="RESTRICT"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    vertical = Column(
        Enum(Vertical, name="catalog_vertical", values_callable=lambda members: [m.value for m in members]),
        nullable=False,
    )
    primary = Column("is_primary", Boolean, nullable=False, default=False)
    locales = Column(JSON, nullable=False)
    indexed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    tenant = relationship("Tenant", back_populates="catalogs")
