# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Billetera API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
#   start-api
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.exceptions import (
    BilleteraException,
    billetera_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.routers import (
    categories,
    envelopes,
    health,
    subscriptions,
    transactions,
    user_settings,
    wallets,
)
from app.auth import routes as auth_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    The Supabase client is created lazily on first use, so startup only
    reports the configuration in effect.
    """
    # Startup
    logger.info(f"Starting Billetera API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    logger.info(f"Payment mode: {settings.PAYMENT_MODE}")

    yield

    # Shutdown
    logger.info("Shutting down Billetera API")


# Create FastAPI application
app = FastAPI(
    title="Billetera API",
    description="""
## Personal Finance API

Billetera tracks real money in **wallets** and plans spending with **envelopes**.

### Concepts

| Concept | Meaning |
|---------|---------|
| **Wallet** | An account holding real money in one currency |
| **Real balance** | What the wallet actually holds |
| **Projected balance** | Real balance minus budget reserved for envelopes |
| **Envelope** | A budget bucket; expenses recorded against it count as spent |
| **Assignment** | Budget reserved from a wallet for an envelope |

### Responses

Every response has the shape `{"success": true, "data": ...}` or
`{"success": false, "error": "...", "code": "..."}`.

Overspending an envelope or taking a wallet below zero never fails a
request; the response carries a `warnings` list instead.
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Verify JWT tokens and read the current user"},
        {"name": "Wallets", "description": "Wallets, adjustments, deposits and transfers"},
        {"name": "Envelopes", "description": "Envelopes, participants and budget assignments"},
        {"name": "Categories", "description": "Categories and subcategories"},
        {"name": "Transactions", "description": "Income, expenses and transfers"},
        {"name": "Settings", "description": "Currencies and user configuration"},
        {"name": "Subscriptions", "description": "Plans, trials, invitations and linked users"},
        {"name": "Health", "description": "API health checks"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(BilleteraException)
async def handle_billetera_exception(request: Request, exc: BilleteraException):
    """Handle domain exceptions."""
    return await billetera_exception_handler(request, exc)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return await http_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_exception(request: Request, exc: RequestValidationError):
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/auth",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api",
    tags=["Health"]
)

# Wallet endpoints
app.include_router(
    wallets.router,
    prefix="/api/wallets",
    tags=["Wallets"]
)

# Envelope endpoints
app.include_router(
    envelopes.router,
    prefix="/api/envelopes",
    tags=["Envelopes"]
)

# Category endpoints
app.include_router(
    categories.router,
    prefix="/api/categories",
    tags=["Categories"]
)

app.include_router(
    categories.subcategories_router,
    prefix="/api/subcategories",
    tags=["Categories"]
)

# Transaction endpoints
app.include_router(
    transactions.router,
    prefix="/api/transactions",
    tags=["Transactions"]
)

# Currency catalog and user configuration
app.include_router(
    user_settings.currencies_router,
    prefix="/api/currencies",
    tags=["Settings"]
)

app.include_router(
    user_settings.user_config_router,
    prefix="/api/user/config",
    tags=["Settings"]
)

# Subscription endpoints
app.include_router(
    subscriptions.router,
    prefix="/api/subscriptions",
    tags=["Subscriptions"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Billetera API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
    }


def main():
    """Entry point for the start-api script."""
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )
