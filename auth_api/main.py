"""
Marketplace Auth API — FastAPI Backend
Seller registration, shop/payment provisioning and password reset
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth_api import models  # noqa: F401  registers tables on Base
from auth_api.db.database import Base, engine
from auth_api.routers import password_reset, sellers
from auth_api.services.otp import close_redis

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("🚀 Marketplace Auth API starting...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_redis()
    await engine.dispose()
    logger.info("🛑 Marketplace Auth API shut down.")


app = FastAPI(
    title="Marketplace Auth API",
    description="Seller onboarding and identity verification backend",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ───────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Envelope: every error is {message, success: false, data?} ──

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    body = {"success": False, "message": exc.detail}
    if isinstance(exc.detail, dict):
        body = {"success": False, **exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": f"{field}: {message}" if field else message},
    )


# ── Routers ────────────────────────────────────────────────
app.include_router(sellers.router, prefix="/api", tags=["Seller Onboarding"])
app.include_router(password_reset.router, prefix="/api", tags=["Password Reset"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "Marketplace Auth API"}
