# models/property.py
from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class Property(TimestampMixin, Base):
     """
     Property model - a rentable unit managed by a tenant organization.
     """
     __tablename__ = "properties"

     id = Column(Integer, primary_key=True, autoincrement=True)
     tenant_id = Column(
          Integer,
          ForeignKey("tenants.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     owner_contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=True)
     name = Column(String(255), nullable=False)
     address = Column(String(500), nullable=True)
     description = Column(Text, nullable=True)

     # Relationships
     tenant = relationship("Tenant", back_populates="properties")
     owner = relationship("Contact")
     contracts = relationship("Contract", back_populates="rented_property")

     def __repr__(self):
          return f"<Property(id={self.id}, name='{self.name}')>"
