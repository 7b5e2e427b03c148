"""End-to-end tests for the upload HTTP API."""
import re

from fastapi.testclient import TestClient

from mediabox.config import AppConfig, StorageConfig, UploadConfig
from mediabox.main import create_app

PUBLIC_IMAGE_URL = re.compile(r"^https?://.+/uploads/images/photo_\d+_[a-z0-9]+\.png$")


class TestUploadInfo:
    """Tests for GET /api/upload/info."""

    def test_default_policy(self, api_client):
        response = api_client.get("/api/upload/info")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["maxFileSize"] == 10 * 1024 * 1024
        assert data["maxFileSizeFormatted"] == "10 MB"
        assert data["allowedImageTypes"] == ["jpg", "jpeg", "png", "gif", "webp"]
        assert data["allowedAudioTypes"] == ["mp3", "wav", "ogg", "m4a", "aac"]
        assert data["allowedVideoTypes"] == ["mp4", "avi", "mov", "wmv", "flv", "webm", "mkv"]


class TestSingleUpload:
    """Tests for POST /api/upload/single."""

    def test_upload_image(self, api_client, upload_dir):
        response = api_client.post(
            "/api/upload/single",
            files={"file": ("photo.png", b"\x89PNG" + b"\0" * (500000 - 4), "image/png")},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "File uploaded successfully"

        data = body["data"]
        assert data["fileType"] == "image"
        assert data["originalName"] == "photo.png"
        assert data["mimetype"] == "image/png"
        assert data["size"] == 500000
        assert data["sizeFormatted"] == "488.28 KB"
        assert data["persisted"] is True
        assert data["note"] is None
        assert PUBLIC_IMAGE_URL.match(data["url"])
        assert data["url"].endswith("/uploads/images/" + data["filename"])

        stored = upload_dir.resolve() / "images" / data["filename"]
        assert data["path"] == str(stored)
        assert stored.stat().st_size == 500000

    def test_uploaded_file_is_served(self, api_client):
        response = api_client.post(
            "/api/upload/single",
            files={"file": ("song.mp3", b"ID3-audio", "audio/mpeg")},
        )
        url = response.json()["data"]["url"]

        served = api_client.get(url)

        assert served.status_code == 200
        assert served.content == b"ID3-audio"

    def test_unsupported_type(self, api_client, upload_dir):
        response = api_client.post(
            "/api/upload/single",
            files={"file": ("doc.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["kind"] == "unsupported_type"
        assert "jpg, jpeg, png, gif, webp" in body["message"]
        assert "mp3, wav, ogg, m4a, aac" in body["message"]
        assert "mp4, avi, mov, wmv, flv, webm, mkv" in body["message"]
        assert list((upload_dir / "images").iterdir()) == []

    def test_missing_file_field(self, api_client):
        response = api_client.post("/api/upload/single", data={"other": "value"})

        assert response.status_code == 400
        body = response.json()
        assert body["kind"] == "missing_file"
        assert 'field name "file"' in body["message"]

    def test_text_field_named_file(self, api_client):
        response = api_client.post("/api/upload/single", data={"file": "not a file"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["kind"] == "missing_file"
        assert 'field name "file"' in body["message"]

    def test_reserved_characters_in_name_are_served(self, api_client):
        response = api_client.post(
            "/api/upload/single",
            files={"file": ("my pic#1.png", b"hash-png", "image/png")},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["filename"].startswith("my pic#1_")
        assert "%23" in data["url"]

        served = api_client.get(data["url"])

        assert served.status_code == 200
        assert served.content == b"hash-png"

    def test_very_long_name_is_stored(self, api_client):
        response = api_client.post(
            "/api/upload/single",
            files={"file": ("a" * 240 + ".png", b"png", "image/png")},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert len(data["filename"].encode("utf-8")) <= 255
        assert data["originalName"] == "a" * 240 + ".png"

    def test_file_too_large(self, tmp_path):
        config = AppConfig(
            upload=UploadConfig(upload_dir=str(tmp_path / "uploads"), max_file_size=1024),
            storage=StorageConfig(backend="disk"),
        )
        client = TestClient(create_app(config))

        response = client.post(
            "/api/upload/single",
            files={"file": ("big.png", b"\0" * 1025, "image/png")},
        )

        assert response.status_code == 413
        body = response.json()
        assert body["kind"] == "file_too_large"
        assert body["message"] == "File size exceeds maximum allowed size of 1 KB"
        assert list((tmp_path / "uploads" / "images").iterdir()) == []

    def test_buffer_backend(self, tmp_path):
        config = AppConfig(
            upload=UploadConfig(upload_dir=str(tmp_path / "uploads")),
            storage=StorageConfig(backend="buffer"),
        )
        client = TestClient(create_app(config))

        response = client.post(
            "/api/upload/single",
            files={"file": ("clip.mp4", b"video", "video/mp4")},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["fileType"] == "video"
        assert data["persisted"] is False
        assert data["path"] is None
        assert data["note"]
        assert re.match(r"^http://testserver/uploads/video/clip_\d+_[a-z0-9]+\.mp4$", data["url"])
        assert "buffer" not in data
        assert not (tmp_path / "uploads").exists()


class TestMultipleUpload:
    """Tests for POST /api/upload/multiple."""

    def test_upload_several(self, api_client):
        response = api_client.post(
            "/api/upload/multiple",
            files=[
                ("files", ("a.png", b"aaa", "image/png")),
                ("files", ("b.wav", b"bb", "audio/wav")),
                ("files", ("c.mkv", b"c", "video/x-matroska")),
            ],
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "3 file(s) uploaded successfully"
        assert [f["originalName"] for f in body["data"]] == ["a.png", "b.wav", "c.mkv"]
        assert [f["fileType"] for f in body["data"]] == ["image", "audio", "video"]
        assert [f["sizeFormatted"] for f in body["data"]] == ["3 Bytes", "2 Bytes", "1 Bytes"]
        assert all(f["url"].startswith("http://testserver/uploads/") for f in body["data"])

    def test_no_files(self, api_client):
        response = api_client.post("/api/upload/multiple")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["kind"] == "missing_file"
        assert "No files uploaded" in body["message"]

    def test_files_under_wrong_field(self, api_client):
        response = api_client.post(
            "/api/upload/multiple",
            files={"file": ("a.png", b"a", "image/png")},
        )

        assert response.status_code == 400
        assert response.json()["kind"] == "missing_file"

    def test_text_field_named_files(self, api_client):
        response = api_client.post("/api/upload/multiple", data={"files": "not a file"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["kind"] == "missing_file"
        assert "No files uploaded" in body["message"]

    def test_one_bad_file_fails_batch(self, api_client, upload_dir):
        response = api_client.post(
            "/api/upload/multiple",
            files=[
                ("files", ("a.png", b"a", "image/png")),
                ("files", ("notes.txt", b"n", "text/plain")),
            ],
        )

        assert response.status_code == 400
        assert response.json()["kind"] == "unsupported_type"
        assert list((upload_dir / "images").iterdir()) == []

    def test_too_many_files(self, api_client):
        files = [("files", (f"{i}.png", b"x", "image/png")) for i in range(11)]

        response = api_client.post("/api/upload/multiple", files=files)

        assert response.status_code == 400
        assert response.json()["kind"] == "too_many_files"


class TestApplication:
    """Tests for the application-level endpoints and middleware."""

    def test_health(self, api_client):
        response = api_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Server is running"
        assert "timestamp" in body

    def test_api_index(self, api_client):
        body = api_client.get("/api").json()

        assert body["message"] == "File Upload API"
        assert body["endpoints"]["uploadSingle"] == "/api/upload/single"
        assert body["endpoints"]["uploadMultiple"] == "/api/upload/multiple"

    def test_unknown_route(self, api_client):
        response = api_client.get("/does/not/exist")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Route not found"}

    def test_security_headers(self, api_client):
        response = api_client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "default-src 'self'" in response.headers["Content-Security-Policy"]

    def test_cors(self, api_client):
        response = api_client.get("/health", headers={"Origin": "https://example.com"})

        # Starlette answers "*" or echoes the origin when credentials are allowed.
        assert response.headers["access-control-allow-origin"] in ("*", "https://example.com")
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_startup_creates_category_directories(self, api_client, upload_dir):
        assert sorted(p.name for p in upload_dir.iterdir()) == ["audio", "images", "video"]
