# models/tenant.py
import enum

from sqlalchemy import Column, Integer, String, Enum
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin, enum_values


class TenantStatus(str, enum.Enum):
     ACTIVE = "active"
     PAUSED = "paused"
     CANCELLED = "cancelled"


class Tenant(TimestampMixin, Base):
     """
     Tenant model - an isolated customer organization (multi-tenancy).

     Not to be confused with a tenant contact (the renter on a lease);
     every other record is scoped by tenant_id.
     """
     __tablename__ = "tenants"

     id = Column(Integer, primary_key=True, autoincrement=True)
     name = Column(String(255), nullable=False)
     status = Column(
          Enum(TenantStatus, name="tenant_status", values_callable=enum_values),
          default=TenantStatus.ACTIVE,
          nullable=False
     )

     # Relationships
     contacts = relationship("Contact", back_populates="tenant", cascade="all, delete-orphan")
     properties = relationship("Property", back_populates="tenant", cascade="all, delete-orphan")
     contracts = relationship("Contract", back_populates="tenant")

     def __repr__(self):
          return f"<Tenant(id={self.id}, name='{self.name}')>"
