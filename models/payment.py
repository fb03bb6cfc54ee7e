# models/payment.py
"""
Payment model - money received against one invoice.

Rows are written only through services.payment_service so that the
invoice's amount_paid and status are recomputed under the invoice lock.
"""
from sqlalchemy import Column, Integer, String, Numeric, Date, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class Payment(TimestampMixin, Base):
     __tablename__ = "payments"

     id = Column(Integer, primary_key=True, autoincrement=True)
     tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id"),  # No cascade: invoices with payments are not deleted implicitly
          nullable=False,
          index=True
     )
     amount = Column(Numeric(15, 2), nullable=False)
     payment_date = Column(Date, nullable=False)
     method = Column(String(50), nullable=False)
     receipt_url = Column(String(500), nullable=True)

     # Relationships
     invoice = relationship("Invoice", back_populates="payments")

     def __repr__(self):
          return f"<Payment(id={self.id}, invoice_id={self.invoice_id}, amount={self.amount})>"
