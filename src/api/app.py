import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import medicines, recognition
from config import settings
from models import SessionLocal, init_db
from services.medicine_search import build_medicine_search
from services.recognizer import build_recognizer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    init_db()
    app.state.medicine_search = build_medicine_search(settings, SessionLocal)
    app.state.recognizer = build_recognizer(settings)
    logger.info(f"Using {settings.recognizer_backend} handwriting recognizer")
    yield
    app.state.medicine_search.cache.clear()

app = FastAPI(
    title=settings.app_name,
    description="Match handwritten prescriptions against a medicine catalog",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(recognition.router, prefix="/api/v1/recognize", tags=["recognition"])
app.include_router(medicines.router, prefix="/api/v1/medicines", tags=["medicines"])


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}
