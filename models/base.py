# models/base.py
import re

from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
     """
     Base class for all SQLAlchemy models.
     Provides common configuration and mixins.
     """

     @declared_attr.directive
     def __tablename__(cls) -> str:
          """
          Automatically generate table name from class name.
          Example: InvoiceCharge -> invoice_charges
          """
          name = re.sub(r'(?<!^)(?=[A-Z])', '_', cls.__name__).lower()
          # Pluralize (simple version)
          if name.endswith('y'):
               return name[:-1] + 'ies'
          elif name.endswith('s'):
               return name + 'es'
          return name + 's'


class TimestampMixin:
     """Adds the created_at column every table carries."""

     created_at = Column(DateTime, server_default=func.now(), nullable=False)


def enum_values(enum_cls):
     """Persist enum values ("issued") rather than member names ("ISSUED")."""
     return [member.value for member in enum_cls]
