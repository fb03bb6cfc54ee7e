from .scheduler import BillingScheduler, TickResult

__all__ = ["BillingScheduler", "TickResult"]
