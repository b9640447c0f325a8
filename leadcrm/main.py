# leadcrm/main.py
from dotenv import load_dotenv

# Load .env before any module reads the settings
load_dotenv()

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings
from .core.limiter import limiter
from .core.users import auth_backend_cookie, auth_backend_jwt, fastapi_users
from .core.bootstrap import bootstrap_system
from .db.engine import create_db_and_tables
from .schemas.user import UserCreate, UserRead, UserUpdate

# Domain API routers
from .api import health
from .api.ad_spends import main as ad_spends_main_api
from .api.appointments import main as appointments_main_api
from .api.clients import main as clients_main_api
from .api.forms import main as forms_main_api
from .api.leads import main as leads_main_api
from .api.notifications import main as notifications_main_api
from .api.quotes import main as quotes_main_api
from .api.revenue import main as revenue_main_api
from .api.users import main as users_main_api

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(title="LeadCRM", version="0.3.0")


# --- Database Initialization ---
@app.on_event("startup")
async def on_startup():
    """Initialize database tables on application startup"""
    await create_db_and_tables()
    bootstrap_system()
    logger.info("Database tables initialized")


# --- Rate limiting (SlowAPI) ---
app.state.limiter = limiter


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(content={"detail": f"Rate limit exceeded: {exc.detail}"}, status_code=429)


app.add_exception_handler(RateLimitExceeded, rate_limit_handler)


# ============================================================================
# --- SECURITY: CORS ---
# ============================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# --- SECURITY: TRUSTED HOSTS ---
# ============================================================================
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts.split(","))


# ============================================================================
# --- SECURITY: HTTP HEADERS ---
# ============================================================================
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# ============================================================================
# --- GLOBAL EXCEPTION HANDLER ---
# ============================================================================
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


# ============================================================================
# --- ROUTERS INCLUSION ---
# ============================================================================

# 1. FastAPI Users routers
app.include_router(
    fastapi_users.get_auth_router(auth_backend_jwt),
    prefix="/auth/jwt",
    tags=["Auth - JWT"],
)
app.include_router(
    fastapi_users.get_auth_router(auth_backend_cookie),
    prefix="/auth/cookie",
    tags=["Auth - Cookie"],
)
app.include_router(
    fastapi_users.get_register_router(UserRead, UserCreate),
    prefix="/auth",
    tags=["Auth - Registration"],
)
app.include_router(
    fastapi_users.get_users_router(UserRead, UserUpdate),
    prefix="/users",
    tags=["Auth - Users"],
)

# 2. Domain API routers
app.include_router(health.router, prefix="/api")
app.include_router(clients_main_api.router, prefix="/api", tags=["Clients"])
app.include_router(leads_main_api.router, prefix="/api", tags=["Leads"])
app.include_router(ad_spends_main_api.router, prefix="/api", tags=["Ad Spend"])
app.include_router(users_main_api.router, prefix="/api", tags=["Users"])
app.include_router(forms_main_api.router, prefix="/api", tags=["Forms"])
app.include_router(notifications_main_api.router, prefix="/api", tags=["Notifications"])
app.include_router(revenue_main_api.router, prefix="/api", tags=["MWS Revenue"])
app.include_router(quotes_main_api.router, prefix="/api", tags=["Quotes"])
app.include_router(appointments_main_api.router, prefix="/api", tags=["Appointments"])
