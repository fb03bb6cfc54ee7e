# models/contract.py
import enum

from sqlalchemy import (
     Column, Integer, String, Numeric, Date, Boolean, ForeignKey, Enum, UniqueConstraint
)
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin, enum_values


class ContractStatus(str, enum.Enum):
     """Lease lifecycle states."""
     DRAFT = "draft"
     SIGNED = "signed"
     ACTIVE = "active"
     EXPIRING = "expiring"
     EXPIRED = "expired"
     CANCELLED = "cancelled"


# Statuses that occupy a property; two of these may not overlap in time
ACTIVE_FAMILY = (ContractStatus.SIGNED, ContractStatus.ACTIVE, ContractStatus.EXPIRING)


class LateFeeType(str, enum.Enum):
     NONE = "none"
     FIXED = "fixed"
     PERCENT = "percent"


class Contract(TimestampMixin, Base):
     """
     Contract model - a lease between an owner contact and a tenant contact
     for one property. Activation expands it into monthly invoices.
     """
     __tablename__ = "contracts"
     __table_args__ = (
          UniqueConstraint("tenant_id", "number", name="uq_contracts_tenant_number"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     tenant_id = Column(
          Integer,
          ForeignKey("tenants.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     number = Column(String(50), nullable=False)
     property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
     tenant_contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False)
     owner_contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False)

     # Lease period (inclusive)
     start_date = Column(Date, nullable=False)
     end_date = Column(Date, nullable=False)

     # Pricing
     rent_amount = Column(Numeric(15, 2), nullable=False)
     payment_day = Column(Integer, nullable=False)  # 1-30

     # Late fee policy
     late_fee_type = Column(
          Enum(LateFeeType, name="late_fee_type", values_callable=enum_values),
          default=LateFeeType.NONE,
          nullable=False
     )
     late_fee_value = Column(Numeric(15, 2), nullable=True)

     status = Column(
          Enum(ContractStatus, name="contract_status", values_callable=enum_values),
          default=ContractStatus.DRAFT,
          nullable=False,
          index=True
     )
     invoices_generated = Column(Boolean, default=False, nullable=False)

     # Relationships
     tenant = relationship("Tenant", back_populates="contracts")
     rented_property = relationship("Property", back_populates="contracts")
     tenant_contact = relationship("Contact", foreign_keys=[tenant_contact_id])
     owner_contact = relationship("Contact", foreign_keys=[owner_contact_id])
     invoices = relationship("Invoice", back_populates="contract", order_by="Invoice.due_date")

     def __repr__(self):
          return f"<Contract(id={self.id}, number='{self.number}', status='{self.status.value}')>"
