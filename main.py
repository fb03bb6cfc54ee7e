import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

import config
from database import SessionLocal, check_connection
from jobs import BillingScheduler
from routers import contracts, invoices, ocr, payments
from services.errors import BillingError
from utils.money import format_amount

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if not check_connection():
        logger.warning("Database is not reachable at startup")
    if config.ENABLE_SCHEDULER:
        scheduler = BillingScheduler(SessionLocal)
        scheduler.start()
    yield
    if scheduler is not None:
        scheduler.stop()


# App instance
app = FastAPI(title="Rentals Back Office", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Service errors -> HTTP
@app.exception_handler(BillingError)
async def billing_error_handler(request: Request, exc: BillingError):
    content = {"detail": exc.message}
    balance_due = getattr(exc, "balance_due", None)
    if balance_due is not None:
        content["balance_due"] = format_amount(balance_due)
    if exc.status_code >= 500:
        logger.error("Billing error on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=content)


app.include_router(contracts.router)
app.include_router(invoices.router)
app.include_router(payments.router)
app.include_router(ocr.router)


@app.get("/api/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=config.PORT, reload=True)
