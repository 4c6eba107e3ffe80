import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from contextlib import asynccontextmanager

from ulingo.database import init_db
from ulingo.config import get_settings
from ulingo.exceptions import ULingoError
from ulingo.logger import setup_logging

# Import routers
from ulingo.routes import admin, auth, chat, levels, progress, pronunciation, quiz, tts

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Initialize database
    setup_logging(settings.LOG_LEVEL)
    await init_db()
    logger.info("Database initialized")
    logger.info("%s started, API docs at /docs", settings.APP_NAME)
    yield
    # Shutdown
    logger.info("Shutting down...")


app = FastAPI(
    title=settings.APP_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan
)

# Include routers
app.include_router(auth.router)           # Register / login
app.include_router(progress.router)       # Streak, progress, reset
app.include_router(levels.router)         # Roadmap and level content
app.include_router(quiz.router)           # Quiz sessions
app.include_router(pronunciation.router)  # Pronunciation practice
app.include_router(chat.router)           # AI assistant
app.include_router(tts.router)            # Text-to-speech
app.include_router(admin.router)          # Level authoring, statistics


@app.exception_handler(ULingoError)
async def ulingo_error_handler(request: Request, exc: ULingoError):
    """Every domain failure becomes a notice the app can show (and maybe retry)"""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc.__cause__)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "retryable": exc.retryable},
    )


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("%s %s: database error", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Could not reach the database, please try again", "retryable": True},
    )


# Health check for API
@app.get("/api/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("ulingo.main:app", host="0.0.0.0", port=8000, reload=True)
