import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from kost.core.config import settings
from kost.core.errors import (
    KostError,
    PaymentValidationError,
    PersistenceError,
    SubmissionInProgressError,
)
from kost.routers import expenses, health, payment_forms, payments, reports, tenants
from kost.services.messaging import WhatsAppNotifier, default_whatsapp_settings

logging.basicConfig(
    level=getattr(logging, settings.api_log_level.upper()),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ─── Security headers middleware ───────────────────────────────────────────────
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


app = FastAPI(
    title="Kost API",
    version="0.1.0",
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url=None,
)
app.add_middleware(SecurityHeadersMiddleware)

# ─── CORS ──────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"]
    if settings.environment == "development"
    else [],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With"],
)

# Message templates are configured here and handed to the notifier explicitly
app.state.notifier = WhatsAppNotifier(default_whatsapp_settings(settings.business_name))


# ─── Error translation ─────────────────────────
_STATUS_FOR = {
    PaymentValidationError: 422,
    SubmissionInProgressError: 409,
    PersistenceError: 400,
}


@app.exception_handler(KostError)
async def kost_error_handler(request: Request, exc: KostError) -> JSONResponse:
    status = next(
        (code for cls, code in _STATUS_FOR.items() if isinstance(exc, cls)), 500
    )
    if status == 500:
        logger.error("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=status, content={"detail": exc.message})


# ─── Routers ──────────────────────────────────
app.include_router(health.router)
app.include_router(tenants.router, prefix="/api/v1")
app.include_router(payments.router, prefix="/api/v1")
app.include_router(payment_forms.router, prefix="/api/v1")
app.include_router(expenses.router, prefix="/api/v1")
app.include_router(reports.router, prefix="/api/v1")
