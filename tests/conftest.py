"""
Pytest Configuration and Shared Fixtures

Provides temporary storage roots, in-process ASGI clients and live servers
bound to ephemeral ports.
"""

import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Test environment setup
os.environ["HTTP_STREAMING_ENVIRONMENT"] = "test"

from app import create_app
from config.settings import Settings
from core.server import FileStreamingServer
from data.storage import LocalFileStorage


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test component interactions"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests against a live server"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take significant time to run"
    )


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings for the test environment (no env/TOML lookup)."""
    return Settings(environment="test")


# =============================================================================
# Temporary Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def storage_dir(temp_dir: Path) -> Path:
    """Storage root path inside the temp dir (not created yet)."""
    return temp_dir / "storage"


@pytest.fixture
def storage(storage_dir: Path, test_settings: Settings) -> LocalFileStorage:
    """Local storage rooted at ``storage_dir``."""
    return LocalFileStorage(storage_dir, chunk_size=test_settings.storage.chunk_size)


# =============================================================================
# FastAPI App Fixtures
# =============================================================================

@pytest.fixture
def app(storage: LocalFileStorage, test_settings: Settings):
    """Create FastAPI app bound to the temporary storage root."""
    return create_app(storage=storage, settings=test_settings)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client that talks to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# =============================================================================
# Live Server Fixtures
# =============================================================================

@pytest.fixture
def live_server(storage_dir: Path, test_settings: Settings) -> Generator[FileStreamingServer, None, None]:
    """Running server on an ephemeral localhost port."""
    server = FileStreamingServer(storage_dir, port=0, host="127.0.0.1", settings=test_settings)
    server.start()
    try:
        yield server
    finally:
        server.stop(0)


@pytest.fixture
def base_url(live_server: FileStreamingServer) -> str:
    return f"http://127.0.0.1:{live_server.port}"


# =============================================================================
# Test Data Factories
# =============================================================================

@pytest.fixture
def payload_factory():
    """Factory for deterministic binary payloads (byte i is i % modulus)."""
    def create(size: int, modulus: int = 251) -> bytes:
        return bytes(i % modulus for i in range(size))
    return create
