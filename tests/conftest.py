"""
Test configuration and fixtures for the Droplet service.

This module provides common fixtures and configuration for all tests.
"""

import os
import sys
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Add the parent directory to the path so we can import main
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.admission_engine import AdmissionEngine, Hooks
from models.validation import AdmissionConfig
from tests.utils.fixtures import FakeTransport, make_hooks, png_handle, text_handle  # noqa: F401


@pytest.fixture
def admission_config() -> AdmissionConfig:
    """
    Fixture providing the admission rules used by most tests.

    Returns:
        AdmissionConfig: PNG only, 1000 byte ceiling
    """
    return AdmissionConfig(
        url="http://uploads.test/files",
        allowed_content_types=["image/png"],
        max_size=1000,
    )


@pytest.fixture
def hooks() -> Hooks:
    """Hooks whose callbacks are mocks."""
    return make_hooks()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def engine(admission_config: AdmissionConfig, hooks: Hooks, transport: FakeTransport) -> AdmissionEngine:
    """
    Fixture providing an engine wired to mock hooks and a fake transport.

    Returns:
        AdmissionEngine: Fresh engine instance
    """
    return AdmissionEngine(config=admission_config, hooks=hooks, transport=transport)


@pytest.fixture
def test_client(engine: AdmissionEngine) -> Generator[TestClient, None, None]:
    """
    FastAPI test client fixture bound to the ``engine`` fixture.

    Yields:
        TestClient: Configured FastAPI test client
    """
    from main import create_app

    with TestClient(create_app(engine)) as client:
        yield client
