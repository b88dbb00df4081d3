from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
import time
import logging

from .api.v1.admin import router as admin_router
from .api.v1.appointments import router as appointments_router
from .api.v1.auth import router as auth_router
from .api.v1.chat import router as chat_router
from .api.v1.doctors import router as doctors_router
from .api.v1.symptoms import router as symptoms_router
from .core.config import settings
from .core.database import SessionLocal, init_db
from .services.auth_service import AuthService
from .services.spell_checker import get_spell_checker

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Symptom triage, doctor discovery and appointment booking",
    openapi_url="/api/v1/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if not settings.TESTING:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=["localhost", "127.0.0.1", "*.localhost", "testserver"]
    )

@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Time: {process_time:.4f}s"
    )

    return response

@app.exception_handler(404)
async def not_found_handler(request: Request, exc: HTTPException):
    # Keep the detail raised by route handlers; only unknown paths get the generic body
    detail = getattr(exc, "detail", None)
    if detail and detail != "Not Found":
        return JSONResponse(status_code=404, content={"detail": detail})

    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "message": "The requested resource was not found",
            "path": str(request.url.path)
        }
    )

@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception):
    logger.error(f"Internal server error: {str(exc)}")
    if isinstance(exc, HTTPException):
        return JSONResponse(status_code=500, content={"detail": exc.detail})

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred"
        }
    )

app.include_router(auth_router, prefix="/api/v1")
app.include_router(doctors_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(appointments_router, prefix="/api/v1")
app.include_router(symptoms_router, prefix="/api/v1")
app.include_router(chat_router, prefix="/api/v1")

@app.on_event("startup")
async def startup_event():
    """Create tables, seed the administrator and load the symptom dataset."""
    logger.info("Starting HealthBot...")

    db_url = settings.get_database_url
    db_type = "PostgreSQL" if "postgresql" in db_url else "SQLite" if "sqlite" in db_url else "Unknown"
    logger.info(f"Using {db_type} database")

    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    db = SessionLocal()
    try:
        AuthService(db).ensure_admin_user()
    finally:
        db.close()

    spell_checker = get_spell_checker()
    logger.info(f"Loaded {len(spell_checker.entries)} symptom entries")

    logger.info("Application startup complete")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down HealthBot...")

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": settings.VERSION
    }

@app.get("/")
async def root():
    return {
        "message": "Welcome to HealthBot API",
        "version": settings.VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health"
    }

@app.get("/api/v1/info")
async def api_info():
    """API information endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.VERSION,
        "endpoints": {
            "authentication": "/api/v1/auth",
            "doctors": "/api/v1/doctors",
            "admin": "/api/v1/admin",
            "appointments": "/api/v1/appointments",
            "symptoms": "/api/v1/symptoms",
            "chat": "/api/v1/chat",
            "docs": "/docs",
            "openapi": "/api/v1/openapi.json"
        }
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "healthbot.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
