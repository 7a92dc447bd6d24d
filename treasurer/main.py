import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import auth, dashboard, events, expenses, extrato, goals, members, payments, reports, settings as settings_api
from .config import DEFAULT_JWT_SECRET, Base, engine, settings
from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .core.request_context import REQUEST_ID_HEADER
from .core.security import SecurityHeadersMiddleware, log_security_warnings

configure_logging(settings.log_level, settings.log_format)

logger = logging.getLogger(__name__)

API_PREFIX = "/api"

app = FastAPI(title="Tesoureiro Assistente")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER, "Content-Disposition"],
)
app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.app_env == "production")

register_exception_handlers(app)


@app.on_event("startup")
def startup() -> None:
    # In dev we make sure tables exist. Alembic migrations should be used for real schema evolution.
    Base.metadata.create_all(bind=engine)
    log_security_warnings(settings.jwt_secret, DEFAULT_JWT_SECRET, settings.balance_policy)
    logger.info("Treasurer API started (env=%s, balance policy=%s)", settings.app_env, settings.balance_policy)


app.include_router(auth.router, prefix=API_PREFIX, tags=["auth"])
app.include_router(members.router, prefix=f"{API_PREFIX}/members", tags=["members"])
app.include_router(payments.router, prefix=f"{API_PREFIX}/payments", tags=["payments"])
app.include_router(expenses.router, prefix=f"{API_PREFIX}/expenses", tags=["expenses"])
app.include_router(events.router, prefix=f"{API_PREFIX}/events", tags=["events"])
app.include_router(goals.router, prefix=f"{API_PREFIX}/goals", tags=["goals"])
app.include_router(extrato.router, prefix=f"{API_PREFIX}/extrato", tags=["extrato"])
app.include_router(reports.router, prefix=f"{API_PREFIX}/reports", tags=["reports"])
app.include_router(dashboard.router, prefix=f"{API_PREFIX}/dashboard", tags=["dashboard"])
app.include_router(settings_api.router, prefix=f"{API_PREFIX}/settings", tags=["settings"])
