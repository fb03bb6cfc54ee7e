# utils/email.py
import logging

import requests

import config
from utils.money import format_amount

logger = logging.getLogger(__name__)

BREVO_URL = "https://api.brevo.com/v3/smtp/email"

REMINDER_SUBJECTS = {
     "due_soon": "Recordatorio: su factura {number} vence el {due}",
     "overdue": "Factura {number} vencida",
}


class EmailDeliveryError(Exception):
     pass


def send_email(to_email: str, to_name: str, subject: str, html: str) -> None:
     if not config.BREVO_API_KEY:
          raise EmailDeliveryError("BREVO_API_KEY is not set")

     response = requests.post(
          BREVO_URL,
          headers={
               "api-key": config.BREVO_API_KEY,
               "Content-Type": "application/json",
          },
          json={
               "sender": {"name": config.MAIL_SENDER_NAME, "email": config.MAIL_SENDER_EMAIL},
               "to": [{"email": to_email, "name": to_name}],
               "subject": subject,
               "htmlContent": html,
          },
          timeout=10,
     )
     if response.status_code not in (200, 201, 202):
          raise EmailDeliveryError(f"Brevo error: {response.text}")


def send_invoice_reminder(invoice, kind: str = "due_soon") -> bool:
     """
     Email the invoice's tenant contact about an upcoming or missed due date.

     Returns False when the contact has no email address.
     """
     contact = invoice.tenant_contact
     if contact is None or not contact.email:
          logger.warning("Invoice %s has no contact email; reminder skipped", invoice.number)
          return False

     subject = REMINDER_SUBJECTS[kind].format(number=invoice.number, due=invoice.due_date.isoformat())
     balance = format_amount(invoice.balance_due)
     html = f"""
          <h2>Hola {contact.full_name},</h2>
          <p>Factura <strong>{invoice.number}</strong> con vencimiento {invoice.due_date.isoformat()}.</p>
          <p>Saldo pendiente: <strong>{balance}</strong></p>
     """
     send_email(contact.email, contact.full_name, subject, html)
     logger.info("Sent %s reminder for invoice %s to %s", kind, invoice.number, contact.email)
     return True
