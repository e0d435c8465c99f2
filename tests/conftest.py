"""
Shared fixtures: a scripted stand-in for Gemini, an in-memory database and
a ready-made pipeline / API client wired to both.
"""

import copy

import pytest
from fastapi.testclient import TestClient

from src.api.main import create_app
from src.config import DEFAULT_PARAMS
from src.data_processing.pipeline import HealthAnalysisPipeline
from src.data_processing.validation import UploadedDocument
from src.parser import AnalysisExtractor, DocumentClassifier
from src.storage import SqlAnalysisStore, SqlRewardLedger, create_session_factory
from tests.helpers import WALLET, FakeModelClient


@pytest.fixture
def params():
    return copy.deepcopy(DEFAULT_PARAMS)


@pytest.fixture
def session_factory():
    return create_session_factory({"url": "sqlite://"})


@pytest.fixture
def store(session_factory):
    return SqlAnalysisStore(session_factory)


@pytest.fixture
def ledger(session_factory, params):
    return SqlRewardLedger(session_factory, params["reward_config"])


@pytest.fixture
def model():
    return FakeModelClient()


@pytest.fixture
def pipeline(model, store, ledger):
    return HealthAnalysisPipeline(
        classifier=DocumentClassifier(model),
        extractor=AnalysisExtractor(model),
        store=store,
        ledger=ledger,
    )


@pytest.fixture
def document():
    return UploadedDocument(
        content=b"%PDF-1.4 fake lab report",
        content_type="application/pdf",
        size=24,
        file_name="cbc.pdf",
        wallet_address=WALLET,
    )


@pytest.fixture
def client(pipeline, params):
    return TestClient(create_app(pipeline=pipeline, params=params))
