# jobs/scheduler.py
"""
Billing Scheduler - the recurring jobs of the invoice lifecycle.

- D-3 reminders for open invoices due in three days
- overdue accrual (late fee + D+1 reminder) for invoices whose due date
  just passed
- monthly insurer reports for the previous month

Each job body is a plain method taking `today`, so it can be driven
without the timer. Every invoice is processed in its own session: one
failing item is logged and the tick moves on to the next.
"""
import logging
import time
from datetime import date, timedelta
from typing import Callable, List, NamedTuple, Optional, Tuple

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

import config
from database import get_session_context
from models import Invoice, InvoiceStatus, Tenant, TenantStatus
from services import storage
from services.invoice_service import InvoiceService
from utils.email import send_invoice_reminder
from utils.money import format_amount

logger = logging.getLogger(__name__)

DUE_SOON_DAYS = 3
REMINDER_STATUSES = (InvoiceStatus.ISSUED, InvoiceStatus.PARTIAL)
NOT_ACCRUING = (InvoiceStatus.DRAFT, InvoiceStatus.PAID, InvoiceStatus.CANCELLED)


class TickResult(NamedTuple):
     processed: int
     failed: int
     deferred: int


def previous_period(today: date) -> str:
     """'YYYY-MM' of the month before today's."""
     last_of_previous = today.replace(day=1) - timedelta(days=1)
     return f"{last_of_previous.year:04d}-{last_of_previous.month:02d}"


def log_insurer_report(db, tenant_id: int, period: str) -> None:
     """Default insurer hook: logs the tenant's invoice summary."""
     summary = InvoiceService.summarize(db, tenant_id)
     logger.info(
          "Insurer report %s for tenant %s: billed=%s collected=%s outstanding=%s",
          period,
          tenant_id,
          summary["total_billed"],
          summary["total_collected"],
          summary["total_outstanding"],
     )


class BillingScheduler:
     """Wraps an APScheduler BackgroundScheduler around the billing jobs."""

     def __init__(
          self,
          session_factory,
          reminder_sender: Optional[Callable[[Invoice, str], bool]] = None,
          insurer_reporter: Optional[Callable] = None,
          timezone: str = config.SCHEDULER_TIMEZONE,
          reminder_hour: int = config.REMINDER_HOUR,
          report_hour: int = config.INSURER_REPORT_HOUR,
          lookback_days: int = config.OVERDUE_LOOKBACK_DAYS,
          tick_deadline_seconds: int = config.SCHEDULER_TICK_DEADLINE_SECONDS,
          clock: Callable[[], float] = time.monotonic,
     ):
          """
          Args:
               session_factory: callable returning a new SQLAlchemy Session
               reminder_sender: called as sender(invoice, "due_soon" | "overdue")
               insurer_reporter: called as reporter(db, tenant_id, "YYYY-MM")
               lookback_days: how many past due dates the overdue job covers
               tick_deadline_seconds: items left when this runs out wait for the next tick
          """
          self.session_factory = session_factory
          self.reminder_sender = reminder_sender or send_invoice_reminder
          self.insurer_reporter = insurer_reporter or log_insurer_report
          self.timezone = timezone
          self.reminder_hour = reminder_hour
          self.report_hour = report_hour
          self.lookback_days = max(1, lookback_days)
          self.tick_deadline_seconds = tick_deadline_seconds
          self.clock = clock
          self._scheduler: Optional[BackgroundScheduler] = None

     # ------------------------------------------------------------------
     # Lifecycle
     # ------------------------------------------------------------------

     def start(self) -> None:
          if self._scheduler is not None and self._scheduler.running:
               logger.warning("Billing scheduler is already running")
               return

          self._scheduler = BackgroundScheduler(
               timezone=self.timezone,
               job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 3600},
          )
          self._scheduler.add_job(
               self.run_due_soon_reminders,
               CronTrigger(hour=self.reminder_hour, minute=0, timezone=self.timezone),
               id="due_soon_reminders",
               replace_existing=True,
          )
          self._scheduler.add_job(
               self.run_overdue_accrual,
               CronTrigger(hour=self.reminder_hour, minute=0, timezone=self.timezone),
               id="overdue_accrual",
               replace_existing=True,
          )
          self._scheduler.add_job(
               self.run_monthly_insurer_reports,
               CronTrigger(day=1, hour=self.report_hour, minute=0, timezone=self.timezone),
               id="insurer_reports",
               replace_existing=True,
          )
          self._scheduler.start()
          logger.info("Billing scheduler started (timezone=%s)", self.timezone)

     def stop(self, wait: bool = True) -> None:
          if self._scheduler is None or not self._scheduler.running:
               return
          self._scheduler.shutdown(wait=wait)
          self._scheduler = None
          logger.info("Billing scheduler stopped")

     @property
     def running(self) -> bool:
          return self._scheduler is not None and self._scheduler.running

     # ------------------------------------------------------------------
     # Jobs
     # ------------------------------------------------------------------

     def run_due_soon_reminders(self, today: Optional[date] = None) -> TickResult:
          """Send D-3 reminders for issued and partially paid invoices."""
          today = today or date.today()
          target = today + timedelta(days=DUE_SOON_DAYS)
          items = self._select(
               lambda db: db.query(Invoice.id, Invoice.tenant_id).filter(
                    Invoice.due_date == target,
                    Invoice.status.in_(REMINDER_STATUSES),
               )
          )
          logger.info("Due-soon reminders: %d invoice(s) due %s", len(items), target.isoformat())
          return self._run_items(items, self._remind_due_soon, "due-soon reminder")

     def run_overdue_accrual(self, today: Optional[date] = None) -> TickResult:
          """
          Accrue late fees on unpaid invoices whose due date fell within the
          look-back window (yesterday by default), then send the D+1 reminder.
          """
          today = today or date.today()
          newest = today - timedelta(days=1)
          oldest = today - timedelta(days=self.lookback_days)
          items = self._select(
               lambda db: db.query(Invoice.id, Invoice.tenant_id).filter(
                    Invoice.due_date >= oldest,
                    Invoice.due_date <= newest,
                    Invoice.status.notin_(NOT_ACCRUING),
                    Invoice.late_fee_applied_at.is_(None),
               )
          )
          logger.info(
               "Overdue accrual: %d invoice(s) due %s..%s",
               len(items), oldest.isoformat(), newest.isoformat()
          )
          return self._run_items(items, self._accrue_overdue, "overdue accrual")

     def run_monthly_insurer_reports(self, today: Optional[date] = None) -> TickResult:
          """Call the insurer hook for every active tenant with last month's period."""
          today = today or date.today()
          period = previous_period(today)
          items = self._select(
               lambda db: db.query(Tenant.id).filter(Tenant.status == TenantStatus.ACTIVE)
          )
          logger.info("Insurer reports for %s: %d tenant(s)", period, len(items))
          return self._run_items(
               items,
               lambda db, tenant_id: self.insurer_reporter(db, tenant_id, period),
               "insurer report",
          )

     # ------------------------------------------------------------------
     # Item handlers
     # ------------------------------------------------------------------

     def _remind_due_soon(self, db, invoice_id: int, tenant_id: int) -> None:
          invoice = storage.get_invoice(db, invoice_id, tenant_id)
          if invoice.status not in REMINDER_STATUSES:
               return
          self.reminder_sender(invoice, "due_soon")

     def _accrue_overdue(self, db, invoice_id: int, tenant_id: int) -> None:
          """
          Accrue the late fee, then send the overdue notice.

          The accrual commits before the notice goes out. A failed send
          still counts the item as failed, but late_fee_applied_at keeps the
          invoice out of later ticks, so the notice is not retried; it is
          logged on its own and can be resent with POST /api/invoices/{id}/remind.
          """
          fee = InvoiceService.apply_late_fee(db, invoice_id, tenant_id)
          invoice = storage.get_invoice(db, invoice_id, tenant_id)
          if invoice.status != InvoiceStatus.OVERDUE:
               return
          logger.info("Invoice %s overdue (fee=%s)", invoice.number, format_amount(fee))
          try:
               self.reminder_sender(invoice, "overdue")
          except Exception:
               logger.error(
                    "Late fee on invoice %s is committed but its overdue reminder was not sent",
                    invoice.number,
               )
               raise

     # ------------------------------------------------------------------
     # Plumbing
     # ------------------------------------------------------------------

     def _select(self, build_query) -> List[Tuple]:
          with get_session_context(self.session_factory) as db:
               return [tuple(row) for row in build_query(db).all()]

     def _run_items(self, items, handler, label: str) -> TickResult:
          deadline = self.clock() + self.tick_deadline_seconds
          processed = failed = 0

          for index, item in enumerate(items):
               if self.clock() > deadline:
                    deferred = len(items) - index
                    logger.warning("%s tick ran out of time; %d item(s) deferred", label, deferred)
                    return TickResult(processed, failed, deferred)

               try:
                    with get_session_context(self.session_factory) as db:
                         handler(db, *item)
                    processed += 1
               except Exception:
                    failed += 1
                    logger.exception("%s failed for %s", label, item)

          return TickResult(processed, failed, 0)
