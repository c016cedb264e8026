"""
Integration Tests: API Endpoints

Tests for the upload, download, generate, health and metrics endpoints
including validation and error responses.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app import create_app
from config.settings import Settings

MIB = 1024 * 1024


# =============================================================================
# Upload Endpoint Tests
# =============================================================================

class TestUploadEndpoint:
    """Test raw-body uploads."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_upload_writes_file(self, client: AsyncClient, storage, payload_factory):
        payload = payload_factory(200_000)

        response = await client.post("/upload", params={"filename": "data.bin"}, content=payload)

        assert response.status_code == 200
        data = response.json()
        assert data["filename"] == "data.bin"
        assert data["size_bytes"] == len(payload)
        assert data["message"] == f"Uploaded data.bin ({len(payload)} bytes)"
        assert (storage.base_dir / "data.bin").read_bytes() == payload

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_upload_overwrites(self, client: AsyncClient, storage):
        await client.post("/upload", params={"filename": "same.txt"}, content=b"first version")
        response = await client.post("/upload", params={"filename": "same.txt"}, content=b"second")

        assert response.status_code == 200
        assert (storage.base_dir / "same.txt").read_bytes() == b"second"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_upload_strips_directories(self, client: AsyncClient, storage):
        response = await client.post("/upload", params={"filename": "a/b/c.txt"}, content=b"abc")

        assert response.status_code == 200
        assert response.json()["filename"] == "c.txt"
        assert (storage.base_dir / "c.txt").read_bytes() == b"abc"
        assert not (storage.base_dir / "a").exists()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_upload_empty_body(self, client: AsyncClient, storage):
        response = await client.post("/upload", params={"filename": "empty.bin"}, content=b"")

        assert response.status_code == 200
        assert response.json()["size_bytes"] == 0
        assert (storage.base_dir / "empty.bin").stat().st_size == 0

    @pytest.mark.integration
    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [{}, {"filename": ""}, {"filename": "   "}])
    async def test_upload_missing_filename(self, client: AsyncClient, params):
        response = await client.post("/upload", params=params, content=b"x")

        assert response.status_code == 400
        assert response.text == "Missing filename query parameter"

    @pytest.mark.integration
    @pytest.mark.asyncio
    @pytest.mark.parametrize("filename", ["../secret", "..", "/", "sub/..", "..\\secret"])
    async def test_upload_invalid_filename(self, client: AsyncClient, storage, filename):
        response = await client.post("/upload", params={"filename": filename}, content=b"x")

        assert response.status_code == 400
        assert response.text == "Invalid filename"
        assert not (storage.base_dir.parent / "secret").exists()
        assert list(storage.base_dir.iterdir()) == []

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_upload_keeps_surrounding_whitespace(self, client: AsyncClient, storage):
        response = await client.post("/upload", params={"filename": " a.txt"}, content=b"spaced")

        assert response.status_code == 200
        assert response.json()["filename"] == " a.txt"
        assert (storage.base_dir / " a.txt").read_bytes() == b"spaced"
        assert not (storage.base_dir / "a.txt").exists()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_upload_wrong_method(self, client: AsyncClient):
        response = await client.get("/upload", params={"filename": "x.bin"})

        assert response.status_code == 405
        assert response.headers["allow"] == "POST"


# =============================================================================
# Download Endpoint Tests
# =============================================================================

class TestDownloadEndpoint:
    """Test streamed downloads."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_round_trip(self, client: AsyncClient, payload_factory):
        payload = payload_factory(300_000)
        await client.post("/upload", params={"filename": "round.bin"}, content=payload)

        response = await client.get("/download", params={"filename": "round.bin"})

        assert response.status_code == 200
        assert response.content == payload
        assert response.headers["content-length"] == str(len(payload))
        assert response.headers["content-disposition"] == 'attachment; filename="round.bin"'

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_content_type_from_name(self, client: AsyncClient, storage):
        (storage.base_dir / "notes.txt").write_bytes(b"hello")

        response = await client.get("/download", params={"filename": "notes.txt"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unknown_type_is_octet_stream(self, client: AsyncClient, storage):
        (storage.base_dir / "blob").write_bytes(b"\x00\x01")

        response = await client.get("/download", params={"filename": "blob"})

        assert response.headers["content-type"] == "application/octet-stream"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_empty_file(self, client: AsyncClient, storage):
        (storage.base_dir / "empty.bin").write_bytes(b"")

        response = await client.get("/download", params={"filename": "empty.bin"})

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["content-length"] == "0"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_missing_file(self, client: AsyncClient):
        response = await client.get("/download", params={"filename": "nope.bin"})

        assert response.status_code == 404
        assert response.text == "File not found"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_directory_is_not_found(self, client: AsyncClient, storage):
        (storage.base_dir / "subdir").mkdir()

        response = await client.get("/download", params={"filename": "subdir"})

        assert response.status_code == 404

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_outside_root_is_not_found(self, client: AsyncClient, storage):
        (storage.base_dir.parent / "secret.txt").write_bytes(b"top secret")

        response = await client.get("/download", params={"filename": "../secret.txt"})

        assert response.status_code == 404
        assert b"top secret" not in response.content

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_download_missing_filename(self, client: AsyncClient):
        response = await client.get("/download")

        assert response.status_code == 400
        assert response.text == "Missing filename query parameter"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_download_wrong_method(self, client: AsyncClient):
        response = await client.post("/download", params={"filename": "x.bin"})

        assert response.status_code == 405

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_name_too_long_is_not_found(self, client: AsyncClient):
        response = await client.get("/download", params={"filename": "a" * 300})

        assert response.status_code == 404
        assert response.text == "File not found"


# =============================================================================
# Generate Endpoint Tests
# =============================================================================

class TestGenerateEndpoint:
    """Test random payload generation."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_generate_one_mb(self, client: AsyncClient, storage):
        response = await client.get("/generate", params={"sizeMB": "1"})

        assert response.status_code == 200
        assert len(response.content) == MIB
        assert response.headers["content-length"] == str(MIB)
        assert response.headers["content-type"] == "application/octet-stream"
        assert response.headers["content-disposition"] == 'attachment; filename="generated-1MB.bin"'
        assert list(storage.base_dir.iterdir()) == []

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_generate_is_random(self, client: AsyncClient):
        first = await client.get("/generate", params={"sizeMB": "1"})
        second = await client.get("/generate", params={"sizeMB": "1"})

        assert first.content != second.content

    @pytest.mark.integration
    @pytest.mark.asyncio
    @pytest.mark.parametrize("size, message", [
        ("0", "sizeMB must be between 1 and 10000"),
        ("10001", "sizeMB must be between 1 and 10000"),
        ("-3", "sizeMB must be between 1 and 10000"),
        ("abc", "sizeMB must be a valid integer"),
        ("1.5", "sizeMB must be a valid integer"),
        ("", "sizeMB must be a valid integer"),
    ])
    async def test_generate_invalid_size(self, client: AsyncClient, size, message):
        response = await client.get("/generate", params={"sizeMB": size})

        assert response.status_code == 400
        assert response.text == message

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_generate_missing_size(self, client: AsyncClient):
        response = await client.get("/generate")

        assert response.status_code == 400
        assert response.text == "Missing sizeMB query parameter"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_generate_wrong_method(self, client: AsyncClient):
        response = await client.post("/generate", params={"sizeMB": "1"})

        assert response.status_code == 405


# =============================================================================
# Health and Metrics Endpoint Tests
# =============================================================================

class TestHealthEndpoints:
    """Test health and metrics endpoints."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient, storage):
        await client.post("/upload", params={"filename": "h.bin"}, content=b"12345")

        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["storage_root"] == str(storage.base_dir)
        assert data["total_files"] == 1
        assert data["total_size_bytes"] == 5

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_metrics_after_transfer(self, client: AsyncClient):
        await client.post("/upload", params={"filename": "m.bin"}, content=b"abc")

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert 'streaming_transfers_total{operation="upload",status="success"}' in response.text
        assert "# TYPE streaming_transfer_duration_seconds histogram" in response.text

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_metrics_disabled(self, storage):
        settings = Settings(environment="test", monitoring={"metrics_enabled": False})
        app = create_app(storage=storage, settings=settings)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/metrics")

        assert response.status_code == 404


# =============================================================================
# Error Handling Tests
# =============================================================================

class TestErrorHandling:
    """Test plain-text error responses."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unknown_path(self, client: AsyncClient):
        response = await client.get("/nowhere")

        assert response.status_code == 404
        assert response.text == "Not Found"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unhandled_error_is_sanitized(self, app, client: AsyncClient):
        async def boom():
            raise RuntimeError("internal detail")

        app.add_api_route("/boom", boom)

        response = await client.get("/boom")

        assert response.status_code == 500
        assert response.text == "An error occurred processing your request"
        assert "internal detail" not in response.text

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_request_validation_is_400(self, app, client: AsyncClient):
        async def typed(count: int):
            return {"count": count}

        app.add_api_route("/typed", typed)

        response = await client.get("/typed", params={"count": "many"})

        assert response.status_code == 400
        assert response.text == "Invalid request parameters: count"

    @pytest.mark.integration
    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        RuntimeError("internal detail /secret/path"),
        FileNotFoundError("/secret/path/missing.bin"),
    ])
    async def test_default_settings_hide_error_details(self, storage, caplog, error):
        """An out-of-the-box app logs the traceback but never sends it."""
        app = create_app(storage=storage, settings=Settings())

        async def boom():
            raise error

        app.add_api_route("/boom", boom)

        with caplog.at_level("ERROR", logger="api.middleware.error_handler"):
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
                response = await ac.get("/boom")

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "An error occurred processing your request"
        assert "/secret/path" not in response.text
        assert "Traceback" not in response.text
        assert any(record.exc_info for record in caplog.records)
