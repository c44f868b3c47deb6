from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import OperationalError
import logging

from app.core.config import settings
from app.core.exceptions import VolunteerServiceError
from app.database.engine import create_db_and_tables
from app.routers import volunteers, skills
from app.schemas.common import ErrorResponse

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")

    create_db_and_tables()
    logger.info("✓ Database tables ready")

    # Initialize the shared cache
    redis_client = None
    try:
        if not settings.CACHE_ENABLED:
            from app.core.cache import NullCache, set_cache
            set_cache(NullCache())
            logger.info("Cache disabled, every read goes to the database")
        elif settings.REDIS_URL:
            logger.info(f"Initializing Redis connection: {settings.REDIS_URL}")
            from redis import Redis
            from app.core.cache import initialize_redis_cache

            redis_client = Redis.from_url(
                settings.REDIS_URL,
                decode_responses=False,
                socket_connect_timeout=5
            )

            # Test connection
            redis_client.ping()

            initialize_redis_cache(redis_client)
            logger.info("✓ Redis cache initialized successfully")
        else:
            logger.info("Redis not configured, using in-memory cache (development mode)")
    except Exception as e:
        logger.warning(f"Failed to initialize Redis: {e}")
        logger.warning("Falling back to in-memory cache")
        redis_client = None

    logger.info("Application startup complete")

    yield

    logger.info("Application shutdown initiated...")

    if redis_client:
        redis_client.close()
        logger.info("✓ Redis connection closed")

    logger.info("Application shutdown complete")

app = FastAPI(
    title="Volunteer Directory Service",
    description="Volunteer records with cached lookups and proximity search",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(VolunteerServiceError)
async def volunteer_service_error_handler(request: Request, exc: VolunteerServiceError):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.error, message=exc.message, details=exc.details).model_dump(),
    )

@app.exception_handler(OperationalError)
async def store_unavailable_handler(request: Request, exc: OperationalError):
    logger.error(f"Database unavailable: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=ErrorResponse(
            error="service_unavailable",
            message="The volunteer store is temporarily unavailable"
        ).model_dump(),
    )

app.include_router(volunteers.router)  # Volunteers: /api/v1/volunteers/*
app.include_router(skills.router)      # Skills: /api/v1/skills/*

@app.get("/")
def read_root():
    return {
        "message": "Welcome to the Volunteer Directory Service",
        "version": "1.0.0",
        "modules": {
            "volunteers": "/api/v1/volunteers/* (profiles, search, proximity, drive history)",
            "skills": "/api/v1/skills/* (skill catalog and proficiency links)"
        },
        "docs": "/docs",
        "redoc": "/redoc"
    }

@app.get("/health")
def health_check():
    return {"status": "healthy"}
