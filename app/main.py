"""
Main FastAPI application for the TextMD content gate.
Serves health, auth, outputs, billing and metrics.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.core.config import settings
from app.core.logging import configure_logging
from app.api.routes import health, auth, outputs, billing
from app.utils.metrics import router as metrics_router


configure_logging()

app = FastAPI(
    title="TextMD Content Gate API",
    description="Tiered access to generated text: previews, entitlement, Stripe billing",
    version="1.0.0",
)

# CORS
origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if not origins:
    origins = ["http://localhost:5173", "http://127.0.0.1:5173", "https://textmd.xyz"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Signed cookie session: user id + anonymous session id
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    session_cookie=settings.session_cookie_name,
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=settings.session_cookie_secure,
)

# Routers
app.include_router(health.router, tags=["health"])
app.include_router(auth.router)
app.include_router(outputs.router)
app.include_router(billing.router)
app.include_router(metrics_router)
