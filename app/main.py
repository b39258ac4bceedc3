from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from app.core.config import settings
from app.core.database import engine, Base
from app.core.cache import payroll_cache
from app.core.logging_config import setup_logging
from app.core.error_handlers import register_error_handlers
from app.core.middleware import add_middleware
from app.auth.routes import router as auth_router
from app.employees.routes import router as employees_router
from app.attendance.routes import router as attendance_router
from app.payrolls.routes import router as payrolls_router

# Set up logging
setup_logging(log_level=settings.log_level, log_file=settings.log_file)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Factory payroll engine: attendance reconciliation, salary computation, tax and analytics",
    version="1.0.0",
    debug=settings.debug
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure this properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register error handlers
register_error_handlers(app)

# Add middleware
add_middleware(app)

# Include routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(employees_router, prefix="/api/v1")
app.include_router(attendance_router, prefix="/api/v1")
app.include_router(payrolls_router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    """Initialize database tables on startup."""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")

        if not payroll_cache.is_available():
            logger.warning("Redis not available, payroll summaries and reports will not be cached")

    except Exception as e:
        logger.error(f"Error during startup: {e}")
        raise  # Re-raise to prevent app from starting with errors


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Application shutting down...")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Factory Payroll System API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
        "endpoints": {
            "auth": "/api/v1/auth",
            "employees": "/api/v1/employees",
            "attendance": "/api/v1/attendance",
            "payrolls": "/api/v1/payrolls",
            "payroll_summary": "/api/v1/payrolls/summary",
            "payroll_reports": "/api/v1/payrolls/reports"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "message": "API is running",
        "cache": "connected" if payroll_cache.health_check() else "unavailable"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
