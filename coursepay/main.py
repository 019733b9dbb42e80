import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coursepay.config import settings
from coursepay.database import create_db_and_tables
from coursepay.exceptions import PaymentFlowError
from coursepay.routes import (
    admin_payments,
    checkout,
    enrollments,
    health,
    payment_status,
    paymob_webhook,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.env == "local":
        create_db_and_tables()
    yield


app = FastAPI(title="Course Payments API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PaymentFlowError)
async def payment_flow_error_handler(request: Request, exc: PaymentFlowError):
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"
    logger.info(f"{request.method} {request.url.path} -> 422: {message}")
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": message},
    )


app.include_router(checkout.router, prefix="/payments", tags=["Checkout"])
app.include_router(payment_status.router, prefix="/payments", tags=["Payment Status"])
app.include_router(paymob_webhook.router, prefix="/payments", tags=["Paymob Webhook"])
app.include_router(enrollments.router, tags=["Enrollments"])
app.include_router(admin_payments.router, prefix="/admin", tags=["Admin Payments"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "message": "Course Payments API",
        "docs": "/docs",
    }
