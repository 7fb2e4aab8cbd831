from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
import logging
import sys

from serenity.core.config import settings
from serenity.core.database import get_db_manager
from serenity.api.health import router as health_router
from serenity.account.api import router as entitlements_router
from serenity.conversation.api import conversation_router
from serenity.conversation.session_manager import get_session_manager
from serenity.version import __title__, __description__


logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    logger.info(f"Starting {__title__} application...")

    if settings.persist_transcripts:
        health_status = get_db_manager().health_check()
        if health_status.get("status") != "healthy":
            logger.error(f"Database health check failed: {health_status}")
            raise RuntimeError("Database initialization failed")
        logger.info(f"Database initialized: {health_status}")

    # builds and validates the category table
    manager = get_session_manager()
    logger.info(f"Application started on {settings.api_host}:{settings.api_port}")

    yield

    logger.info(f"Shutting down {__title__} application...")
    await manager.drain()
    logger.info("Pending replies delivered.")


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description=__description__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error for {request.method} {request.url}")
    logger.error(f"Validation errors: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors()}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Global exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


app.include_router(health_router, prefix="/api/v1", tags=["Health"])
app.include_router(conversation_router, prefix="/api/v1", tags=["Conversation"])
app.include_router(entitlements_router, prefix="/api/v1", tags=["Entitlements"])


@app.get("/")
async def root():
    return {
        "message": f"{__title__} API",
        "version": settings.api_version,
        "status": "running",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "serenity.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower()
    )
