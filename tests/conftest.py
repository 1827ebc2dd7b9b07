"""Test fixtures for matching, storage and API tests."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
import sys
from pathlib import Path
import os


def ensure_src_on_path() -> None:
    root = Path(__file__).resolve().parent.parent
    src_path = root / "src"
    if str(src_path) not in sys.path:
        sys.path.append(str(src_path))


ensure_src_on_path()

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RECOGNIZER_BACKEND", "mock")

from api.routers import medicines, recognition
from models import Base, Medicine, create_fulltext_index, rebuild_fulltext_index
from services.catalog_store import SqlCatalogStore
from services.medicine_search import MedicineSearchService
from services.recognizer import MockHandwritingRecognizer

SAMPLE_MEDICINES = [
    {
        "id": "med-augmentin",
        "name": "Augmentin",
        "brand_name": "Augmentin 625",
        "manufacturer_name": "GlaxoSmithKline",
        "short_composition": "Amoxycillin (500mg) + Clavulanic Acid (125mg)",
        "category": "Antibiotic",
        "rx_required": "Prescription Required",
    },
    {
        "id": "med-azithral",
        "name": "Azithral",
        "brand_name": None,
        "manufacturer_name": "Alembic Pharmaceuticals",
        "short_composition": "Azithromycin (500mg)",
        "category": "Antibiotic",
        "rx_required": "Prescription Required",
    },
    {
        "id": "med-amoxicillin",
        "name": "Amoxicillin",
        "brand_name": "Mox 500",
        "manufacturer_name": "Ranbaxy",
        "short_composition": "Amoxycillin (500mg)",
        "category": "Antibiotic",
        "rx_required": None,
    },
    {
        "id": "med-paracetamol",
        "name": "Paracetamol",
        "brand_name": "Crocin",
        "manufacturer_name": "GlaxoSmithKline",
        "short_composition": "Paracetamol (500mg)",
        "category": "Analgesic",
        "rx_required": None,
    },
    {
        "id": "med-dolo",
        "name": "Dolo 650",
        "brand_name": "Dolo",
        "manufacturer_name": "Micro Labs",
        "short_composition": "Paracetamol (650mg)",
        "category": "Analgesic",
        "rx_required": None,
    },
    {
        "id": "med-pan",
        "name": "Pan 40",
        "brand_name": "Pantoprazole",
        "manufacturer_name": "Alkem Laboratories",
        "short_composition": "Pantoprazole (40mg)",
        "category": None,
        "rx_required": "Prescription Required",
    },
]


@pytest.fixture(scope="function")
def db_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def fts_enabled(db_engine) -> bool:
    with db_engine.begin() as connection:
        return create_fulltext_index(connection)


@pytest.fixture(scope="function")
def session_factory(db_engine, fts_enabled):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def seeded_catalog(db_engine, session_factory):
    session = session_factory()
    for data in SAMPLE_MEDICINES:
        session.add(Medicine(**data))
    session.commit()
    session.close()
    with db_engine.begin() as connection:
        rebuild_fulltext_index(connection)
    return session_factory


@pytest.fixture(scope="function")
def catalog_store(seeded_catalog) -> SqlCatalogStore:
    return SqlCatalogStore(seeded_catalog)


@pytest.fixture(scope="function")
def test_app(catalog_store):
    @asynccontextmanager
    async def test_lifespan(app: FastAPI) -> AsyncGenerator:
        yield

    app = FastAPI(
        title="MedScribe Test",
        description="Match handwritten prescriptions against a medicine catalog",
        version="0.1.0",
        lifespan=test_lifespan,
    )

    app.include_router(recognition.router, prefix="/api/v1/recognize", tags=["recognition"])
    app.include_router(medicines.router, prefix="/api/v1/medicines", tags=["medicines"])

    app.state.medicine_search = MedicineSearchService(catalog_store)
    app.state.recognizer = MockHandwritingRecognizer()

    @app.get("/")
    async def root():
        return {
            "name": "MedScribe",
            "version": "0.1.0",
            "status": "running",
        }

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


@pytest.fixture(scope="function")
def client(test_app: FastAPI):
    with TestClient(test_app) as test_client:
        yield test_client
