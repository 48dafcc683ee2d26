# src/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from auth.routes import router as auth_router
from content.routes import router as content_router
from admin.routes import router as admin_router
from config import settings
from database import init_db
from errors import register_exception_handlers
from scheduler.tasks import run_maintenance, start_scheduler, stop_scheduler

logging.basicConfig(level=logging.INFO)

app = FastAPI(
    title="Blog Backend",
    description="API for a blog with role based permissions",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(auth_router, prefix=settings.API_PREFIX)
app.include_router(content_router, prefix=settings.API_PREFIX)
app.include_router(admin_router, prefix=settings.API_PREFIX)

@app.on_event("startup")
async def startup_event():
    """Create tables, repair leftovers from an unclean shutdown, start jobs."""
    init_db()
    if settings.ENABLE_SCHEDULER:
        run_maintenance()
        start_scheduler()

@app.on_event("shutdown")
async def shutdown_event():
    stop_scheduler()

@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Welcome to Blog Backend!"}
