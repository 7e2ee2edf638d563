import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import CORS_ORIGINS, LOG_LEVEL
from .database import create_tables
from .errors import register_exception_handlers
from .logging_setup import setup_logging
from .routers import ai, auth, export, notes, tags, tasks, tracking, views

setup_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="StudyTrack API",
    description="Study task tracker with progress views, timers, notes and an AI study assistant",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(tasks.router, prefix="/api", tags=["tasks"])
app.include_router(tags.router, prefix="/api", tags=["tags"])
app.include_router(tracking.router, prefix="/api", tags=["tracking"])
app.include_router(notes.router, prefix="/api", tags=["notes"])
app.include_router(views.router, prefix="/api", tags=["views"])
app.include_router(export.router, prefix="/api", tags=["export"])
app.include_router(ai.router, prefix="/api", tags=["ai"])


# Create tables on startup
@app.on_event("startup")
def on_startup():
    create_tables()
    logger.info("StudyTrack API started")


@app.get("/")
def read_root():
    return {"message": "StudyTrack API"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}
