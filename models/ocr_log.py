# models/ocr_log.py
import enum

from sqlalchemy import Column, Integer, String, Numeric, Date, Text, ForeignKey, Enum
from .base import Base, TimestampMixin, enum_values


class OcrStatus(str, enum.Enum):
     PENDING = "pending"
     OK = "ok"
     NEEDS_REVIEW = "needs_review"
     ERROR = "error"


class OcrLog(TimestampMixin, Base):
     """
     OcrLog model - what the external OCR extractor read from an uploaded
     utility bill. Approving one turns it into an invoice charge.
     """
     __tablename__ = "ocr_logs"

     id = Column(Integer, primary_key=True, autoincrement=True)
     tenant_id = Column(
          Integer,
          ForeignKey("tenants.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     file_url = Column(String(500), nullable=False)
     provider = Column(String(50), nullable=False)  # textract, vision
     confidence = Column(Numeric(5, 2), nullable=True)
     status = Column(
          Enum(OcrStatus, name="ocr_status", values_callable=enum_values),
          default=OcrStatus.PENDING,
          nullable=False
     )
     extracted_amount = Column(Numeric(15, 2), nullable=True)
     extracted_reference = Column(String(255), nullable=True)
     extracted_period_start = Column(Date, nullable=True)
     extracted_period_end = Column(Date, nullable=True)
     message = Column(Text, nullable=True)

     def __repr__(self):
          return f"<OcrLog(id={self.id}, status='{self.status.value}', amount={self.extracted_amount})>"
