import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from impact_flow.application.event_handlers import register_event_handlers
from impact_flow.config import settings
from impact_flow.db import init_db
from impact_flow.domain.errors import (
    NotFoundError,
    ReferentialIntegrityError,
    StorageError,
)
from impact_flow.routers import criteria, health, profiles, projects

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Impact Flow API",
    description="Companion service storing profiles, delegated projects and success criteria",
    version=settings.VERSION,
)


@app.on_event("startup")
async def startup_event():
    init_db()
    register_event_handlers()


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allows all origins
    allow_credentials=True,
    allow_methods=["*"],  # Allows all methods
    allow_headers=["*"],  # Allows all headers
)


# Domain error handlers
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ReferentialIntegrityError)
async def integrity_error_handler(request: Request, exc: ReferentialIntegrityError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# Include routers
app.include_router(health.router, prefix="/api", tags=["Health"])  # Health check endpoints first
app.include_router(profiles.router, prefix="/api", tags=["Profiles"])
app.include_router(projects.router, prefix="/api", tags=["Projects"])
app.include_router(criteria.router, prefix="/api", tags=["Criteria"])


@app.get("/")
async def root():
    return {"message": "Welcome to Impact Flow API. See /docs for API documentation"}
