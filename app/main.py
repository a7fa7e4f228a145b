import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import OperationalError

from app.core.config import settings
from app.core.database import SessionLocal, init_db, ping_database, wait_for_database
from app.core.logging_config import setup_logging
from app.routers import auth, users, freelancers, equipment, search, featured, contact, media
from app.services.locations import seed_locations, load_location_index

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    wait_for_database()
    init_db()

    db = SessionLocal()
    try:
        seed_locations(db)
        app.state.location_index = load_location_index(db)
    finally:
        db.close()

    logger.info("%s started (%d locations indexed)", settings.APP_NAME, len(app.state.location_index))
    yield
    logger.info("%s shutting down", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description="Marketplace for freelancers, equipment owners and recruiters",
    version="1.0.0",
    lifespan=lifespan,
)

# Local media backend serves uploaded files from here
Path(settings.MEDIA_ROOT).mkdir(parents=True, exist_ok=True)
app.mount("/media", StaticFiles(directory=settings.MEDIA_ROOT), name="media")

origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Error handlers ───────────────────────────────────────────────────────────

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    messages = []
    for error in errors:
        field = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
        messages.append(f"{field}: {error.get('msg')}" if field else error.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "msg": "; ".join(messages) or "Invalid request",
            "errors": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                for e in errors
            ],
        },
    )


@app.exception_handler(OperationalError)
async def database_exception_handler(request: Request, exc: OperationalError):
    logger.error("Database unavailable during %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"success": False, "msg": "Database temporarily unavailable, please try again"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error during %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "msg": "Internal server error"},
    )


# Include routers
app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(freelancers.router, prefix="/api")
app.include_router(equipment.router, prefix="/api")
app.include_router(search.router, prefix="/api")
app.include_router(featured.router, prefix="/api")
app.include_router(contact.router, prefix="/api")
app.include_router(media.router, prefix="/api")


@app.get("/")
def root():
    return {
        "message": settings.APP_NAME,
        "version": "1.0.0",
        "status": "active",
        "documentation": "/docs"
    }


@app.get("/api/health")
def health_check():
    return {
        "success": True,
        "timestamp": datetime.now(timezone.utc),
        "database": ping_database(),
    }
