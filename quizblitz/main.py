"""
QuizBlitz API - Main Application
Live classroom quiz games: lessons, AI quiz generation, hosted sessions
FILE: quizblitz/main.py
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import time

from quizblitz.core.config import settings
from quizblitz.core.errors import QuizBlitzError
from quizblitz.db import create_storage
from quizblitz.services import llm_client
from quizblitz.services.session_locks import SessionLockRegistry
from quizblitz.api.auth import router as auth_router
from quizblitz.api.lessons import router as lessons_router
from quizblitz.api.quizzes import router as quizzes_router
from quizblitz.api.sessions import router as sessions_router, players_router
from quizblitz.api.leaderboard import router as leaderboard_router, badges_router
from quizblitz.api.students import router as students_router

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info(f"🚀 Starting {settings.app_name}...")

    try:
        app.state.storage = await create_storage(settings)
        app.state.session_locks = SessionLockRegistry()
        logger.info(f"✅ Storage backend: {settings.storage_backend}")
    except Exception as e:
        logger.error(f"❌ Startup error: {e}")
        raise

    yield

    logger.info(f"🛑 Shutting down {settings.app_name}...")
    try:
        await app.state.storage.close()
        logger.info("✅ Cleanup complete")
    except Exception as e:
        logger.error(f"❌ Shutdown error: {e}")


app = FastAPI(
    title=settings.app_name,
    description="""
    Classroom quiz-game API.

    ## Features
    - **Lessons & Quizzes**: author lessons, create quizzes by hand or generate them with an LLM
    - **Live Games**: host a session, players join by code, answer against the clock
    - **Scoring**: speed-weighted points, streaks, final standings
    - **Leaderboards & Badges**: cumulative student statistics and achievements
    - **Students**: teachers list and remove student accounts

    ## Endpoints
    - **Auth**: `/api/auth/*`
    - **Lessons**: `/api/lessons/*`
    - **Quizzes**: `/api/quizzes/*`
    - **Sessions**: `/api/sessions/*` (poll `GET /api/sessions/{id}` every 2 s)
    - **Leaderboard**: `/api/leaderboard/{score,games,wins}`
    - **Badges**: `/api/badges`
    - **Students**: `/api/students` (teachers only)
    - **Health**: `/health`
    """,
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time to response headers"""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000  # Convert to ms
    response.headers["X-Process-Time-Ms"] = str(round(process_time, 2))
    return response


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests"""
    logger.info(f"📨 {request.method} {request.url.path}")
    response = await call_next(request)
    logger.info(
        f"📤 {request.method} {request.url.path} - "
        f"Status: {response.status_code}"
    )
    return response


# ==================== EXCEPTION HANDLERS ====================

@app.exception_handler(QuizBlitzError)
async def quizblitz_exception_handler(request: Request, exc: QuizBlitzError):
    """Map domain errors to their HTTP status"""
    if exc.status_code >= 500:
        logger.error(f"❌ {exc.code} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"⚠️ {exc.code} on {request.url.path}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request body/params failed pydantic validation"""
    return JSONResponse(
        status_code=422,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "retryable": False,
            "detail": [
                {"loc": list(err.get("loc", [])), "msg": err.get("msg")}
                for err in exc.errors()
            ]
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors gracefully"""
    logger.error(f"❌ Unhandled exception: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again later.",
            "retryable": False,
            "detail": str(exc) if settings.debug else None
        }
    )


# ==================== INCLUDE ROUTERS ====================

app.include_router(auth_router)
app.include_router(lessons_router)
app.include_router(quizzes_router)
app.include_router(sessions_router)
app.include_router(players_router)
app.include_router(leaderboard_router)
app.include_router(badges_router)
app.include_router(students_router)


# ==================== ROOT ENDPOINTS ====================

@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "status": "operational",
        "endpoints": {
            "docs": "/docs",
            "auth": "/api/auth",
            "lessons": "/api/lessons",
            "quizzes": "/api/quizzes",
            "sessions": "/api/sessions",
            "leaderboard": "/api/leaderboard",
            "badges": "/api/badges",
            "students": "/api/students",
            "health": "/health"
        }
    }


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """
    Health check for storage and LLM configuration

    Returns:
        200 when storage responds, 503 otherwise
    """
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "components": {}
    }

    storage = request.app.state.storage
    storage_ok = await storage.ping()
    health_status["components"]["storage"] = {
        "status": "healthy" if storage_ok else "unhealthy",
        "backend": settings.storage_backend
    }
    if not storage_ok:
        logger.error("❌ Storage health check failed")

    # LLM is optional: only generation depends on it
    health_status["components"]["llm"] = llm_client.health_check()

    health_status["status"] = "healthy" if storage_ok else "degraded"
    health_status["api"] = {
        "title": app.title,
        "version": app.version,
        "status": "operational"
    }

    return JSONResponse(
        status_code=200 if storage_ok else 503,
        content=health_status
    )


# ==================== RUN APPLICATION ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "quizblitz.main:app",
        host="0.0.0.0",
        port=8080,
        reload=settings.debug,
        log_level="info"
    )
