# backend/academy/main.py

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import database
from academy.db import Base, engine
from academy import models  # noqa: F401  (registers tables on Base)

# Import routers
from academy import auth as auth_router
from academy.routers import (
    users,
    teams,
    positions,
    players,
    attendance
)
from academy.services.errors import NotFound, PermissionDenied, ServiceError, StoreError, ValidationError

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# ---------------------------
# Create database tables
# ---------------------------
# This will create all tables from models.py if they don't exist
Base.metadata.create_all(bind=engine)

# ---------------------------
# FastAPI app initialization
# ---------------------------
app = FastAPI(
    title="Academy Admin API",
    description="Backend API for managing academy staff, players, teams, positions and attendance.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# ---------------------------
# CORS setup (allow frontend domains)
# ---------------------------
cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

# ---------------------------
# Service errors -> HTTP
# ---------------------------
_STATUS_BY_ERROR = [
    (ValidationError, 400),
    (PermissionDenied, 403),
    (NotFound, 404),
    (StoreError, 400),
]

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    status_code = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    if status_code == 500:
        logger.error("Unhandled service error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})

# ---------------------------
# Include routers
# ---------------------------
routers = [
    auth_router.router,
    users.router,
    teams.router,
    positions.router,
    players.router,
    attendance.router
]

for r in routers:
    app.include_router(r)

# ---------------------------
# Root endpoint
# ---------------------------
@app.get("/", tags=["Root"])
def root():
    return {"message": "Welcome to Academy Admin API"}
