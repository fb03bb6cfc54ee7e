# models/invoice.py
import enum
from sqlalchemy import (
     Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Enum, UniqueConstraint
)
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin, enum_values


class InvoiceStatus(str, enum.Enum):
     """Enumeration for invoice payment status."""
     DRAFT = "draft"
     ISSUED = "issued"
     PARTIAL = "partial"
     PAID = "paid"
     OVERDUE = "overdue"
     CANCELLED = "cancelled"


class ChargeKind(str, enum.Enum):
     """Line-item category; LATE_FEE charges feed Invoice.late_fee, the rest feed subtotal."""
     RENT = "rent"
     LATE_FEE = "late_fee"
     ADJUSTMENT = "adjustment"
     OTHER = "other"


class Invoice(TimestampMixin, Base):
     """
     Invoice model - one billing period's amount due under a contract.

     The money columns are a cache of the charges and payments attached to
     the invoice; services.invoice_service recomputes them after every
     mutation.
     """
     __tablename__ = "invoices"
     __table_args__ = (
          UniqueConstraint("tenant_id", "number", name="uq_invoices_tenant_number"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)

     # Foreign keys
     # No cascade: tenant deletes reach invoices through contracts
     tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
     contract_id = Column(
          Integer,
          ForeignKey("contracts.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     tenant_contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False)

     # Invoice details
     number = Column(String(80), nullable=False)
     issue_date = Column(Date, nullable=False)
     due_date = Column(Date, nullable=False, index=True)
     subtotal = Column(Numeric(15, 2), nullable=False, default=0)
     tax = Column(Numeric(15, 2), nullable=False, default=0)
     other_charges = Column(Numeric(15, 2), nullable=False, default=0)
     late_fee = Column(Numeric(15, 2), nullable=False, default=0)
     total_amount = Column(Numeric(15, 2), nullable=False, default=0)
     amount_paid = Column(Numeric(15, 2), nullable=False, default=0)
     status = Column(
          Enum(InvoiceStatus, name="invoice_status", create_constraint=True, values_callable=enum_values),
          default=InvoiceStatus.ISSUED,
          nullable=False,
          index=True
     )
     late_fee_applied_at = Column(DateTime, nullable=True)

     # Relationships
     contract = relationship("Contract", back_populates="invoices")
     tenant_contact = relationship("Contact")
     charges = relationship(
          "InvoiceCharge",
          back_populates="invoice",
          cascade="all, delete-orphan",
          order_by="InvoiceCharge.id"
     )
     payments = relationship("Payment", back_populates="invoice", order_by="Payment.id")

     def __repr__(self):
          return f"<Invoice(id={self.id}, number='{self.number}', total={self.total_amount}, status='{self.status.value}')>"

     @property
     def balance_due(self):
          return (self.total_amount or 0) - (self.amount_paid or 0)


class InvoiceCharge(TimestampMixin, Base):
     """
     InvoiceCharge model - a line item on an invoice.
     """
     __tablename__ = "invoice_charges"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     kind = Column(
          Enum(ChargeKind, name="charge_kind", values_callable=enum_values),
          default=ChargeKind.OTHER,
          nullable=False
     )
     description = Column(String(500), nullable=False)
     amount = Column(Numeric(15, 2), nullable=False)

     invoice = relationship("Invoice", back_populates="charges")

     def __repr__(self):
          return f"<InvoiceCharge(id={self.id}, kind='{self.kind.value}', amount={self.amount})>"
