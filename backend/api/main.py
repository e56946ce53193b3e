"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import lanyard, sessions
from settings import settings

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Create app
app = FastAPI(
    title="Lanyard Studio API",
    description="Personalized lanyard cards and social preview images",
    version="0.1.0",
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.CORS_ALLOW_ALL else [],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(lanyard.router, prefix="/lanyard", tags=["lanyard"])
app.include_router(sessions.router, prefix="/lanyard/sessions", tags=["sessions"])


@app.on_event("startup")
async def startup_event():
    """Begin loading the shared export background."""
    sessions.background.init()
    logger.info("Loading export background from %s", sessions.background.source)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Lanyard Studio API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "background_loaded": sessions.background.loaded,
        "background_available": sessions.background.available,
    }
