"""
FastAPI main application for the tutoring platform backend.
Provides the authentication and session API for teachers and parents.
"""
import logging
from typing import Optional

import redis
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from auth.jwt_handler import TokenIssuer
from auth.session_cache import SessionCacheUnavailable
from config import Settings, load_settings
from database import Base, create_db_engine, create_session_factory
from routers import auth as auth_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application around one validated Settings object.

    Args:
        settings: Settings to use; loaded from the environment when omitted

    Returns:
        Configured FastAPI app
    """
    settings = settings or load_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title=f"{settings.project_name} API",
        description="Authentication and session API for the tutoring platform",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    engine = create_db_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.redis = redis.Redis.from_url(settings.redis_url, decode_responses=True)
    app.state.token_issuer = TokenIssuer(settings.jwt_secret)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(SessionCacheUnavailable)
    async def session_cache_unavailable_handler(request: Request, exc: SessionCacheUnavailable):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": "Session store unavailable"},
        )

    # Health check endpoint
    @app.get("/")
    async def root():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": f"{settings.project_name} API",
            "version": "1.0.0",
            "environment": settings.environment,
        }

    @app.get("/health")
    def health_check(request: Request):
        """Detailed health check with database and cache status"""
        try:
            with request.app.state.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            db_status = "connected"
        except Exception as e:
            db_status = f"error: {str(e)}"

        try:
            request.app.state.redis.ping()
            cache_status = "connected"
        except redis.RedisError as e:
            cache_status = f"error: {str(e)}"

        healthy = db_status == "connected" and cache_status == "connected"
        return {
            "status": "healthy" if healthy else "unhealthy",
            "database": db_status,
            "cache": cache_status,
            "environment": settings.environment,
        }

    # Register routers
    app.include_router(auth_router.router, prefix=API_PREFIX, tags=["auth"])

    logger.info("Application configured (environment=%s)", settings.environment)
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,  # Auto-reload on code changes (development only)
    )
