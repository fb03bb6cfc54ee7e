# models/contact.py
import enum

from sqlalchemy import Column, Integer, String, ForeignKey, Enum
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin, enum_values


class ContactKind(str, enum.Enum):
     OWNER = "owner"
     TENANT = "tenant"


class Contact(TimestampMixin, Base):
     """
     Contact model - property owners and renters (tenant contacts).
     Tenant contacts are the payers of invoices and receive reminders.
     """
     __tablename__ = "contacts"

     id = Column(Integer, primary_key=True, autoincrement=True)
     tenant_id = Column(
          Integer,
          ForeignKey("tenants.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     kind = Column(
          Enum(ContactKind, name="contact_kind", values_callable=enum_values),
          nullable=False
     )
     full_name = Column(String(200), nullable=False)
     email = Column(String(255), nullable=True)
     phone = Column(String(50), nullable=True)

     # Relationships
     tenant = relationship("Tenant", back_populates="contacts")

     def __repr__(self):
          return f"<Contact(id={self.id}, kind='{self.kind.value}', name='{self.full_name}')>"
