# services/locks.py
"""
Per-invoice mutual exclusion for financial mutations.

invoice_guard() serializes "read balance -> validate -> write -> recompute"
for one invoice: it holds a process-local lock keyed by invoice id and
locks the invoice row in the database (SELECT ... FOR UPDATE), then
commits on success or rolls back on error before releasing.
"""
import logging
import threading
import weakref
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from models import Invoice
from services import storage

logger = logging.getLogger(__name__)

_locks: "weakref.WeakValueDictionary[int, threading.RLock]" = weakref.WeakValueDictionary()
_registry_lock = threading.Lock()


def _lock_for(invoice_id: int) -> threading.RLock:
     with _registry_lock:
          lock = _locks.get(invoice_id)
          if lock is None:
               lock = threading.RLock()
               _locks[invoice_id] = lock
          return lock


@contextmanager
def invoice_guard(db: Session, invoice_id: int, tenant_id: int) -> Iterator[Invoice]:
     """
     Yield the freshly locked invoice; commit when the block finishes.

     Raises NotFoundError (after rolling back) when the invoice is not in
     the tenant's scope.
     """
     lock = _lock_for(invoice_id)
     with lock:
          try:
               invoice = storage.get_invoice(db, invoice_id, tenant_id, for_update=True)
               yield invoice
               db.commit()
          except Exception:
               db.rollback()
               logger.debug("Rolled back guarded mutation on invoice %s", invoice_id)
               raise
