from datetime import datetime

from fastapi.testclient import TestClient

from videoshare.config import Settings, get_settings
from videoshare.main import create_app
from videoshare.services.upload_grant import compute_signature
from videoshare.services.videos import create_video

TEST_PRIVATE_KEY = "private_test_key"


class TestUploadGrantEndpoint:
    def test_returns_signed_grant(self, client):
        res = client.get("/api/auth/imagekit-auth")
        assert res.status_code == 200
        body = res.json()
        assert set(body) == {"token", "expiresAt", "signature"}
        assert body["signature"] == compute_signature(TEST_PRIVATE_KEY, body["token"], body["expiresAt"])

    def test_is_public(self, client):
        assert client.get("/api/auth/imagekit-auth").status_code == 200

    def test_missing_private_key_is_500_with_error(self, app, client):
        app.dependency_overrides[get_settings] = lambda: Settings(imagekit_private_key="")
        res = client.get("/api/auth/imagekit-auth")
        assert res.status_code == 500
        assert res.json() == {"error": "ImageKit private key not configured"}


class TestCreateVideo:
    def test_requires_session(self, client):
        res = client.post("/api/video", json={"title": "t", "videoUrl": "http://x/video.mp4"})
        assert res.status_code == 401
        assert res.json() == {"error": "Not authenticated"}

    def test_rejects_forged_token(self, client):
        res = client.post(
            "/api/video",
            json={"title": "t", "videoUrl": "http://x/video.mp4"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert res.status_code == 401

    def test_empty_title_is_400(self, client, auth_headers):
        res = client.post(
            "/api/video",
            json={"title": "", "description": "", "videoUrl": "http://x/video.mp4", "thumbnailUrl": ""},
            headers=auth_headers,
        )
        assert res.status_code == 400
        assert res.json() == {"error": "Title is required"}

    def test_missing_video_url_is_400(self, client, auth_headers):
        res = client.post("/api/video", json={"title": "My Clip"}, headers=auth_headers)
        assert res.status_code == 400
        assert res.json() == {"error": "Video URL is required"}

    def test_null_title_is_400_with_error(self, client, auth_headers):
        res = client.post("/api/video", json={"title": None, "videoUrl": "http://x/v.mp4"}, headers=auth_headers)
        assert res.status_code == 400
        assert res.json() == {"error": "Title is required"}

    def test_null_video_url_is_400_with_error(self, client, auth_headers):
        res = client.post("/api/video", json={"title": "My Clip", "videoUrl": None}, headers=auth_headers)
        assert res.status_code == 400
        assert res.json() == {"error": "Video URL is required"}

    def test_wrong_type_is_400_with_error(self, client, auth_headers):
        res = client.post("/api/video", json={"title": ["a"], "videoUrl": "http://x/v.mp4"}, headers=auth_headers)
        assert res.status_code == 400
        assert res.json() == {"error": "Invalid value for title"}

    def test_creates_video_with_thumbnail_fallback(self, client, auth_headers):
        res = client.post(
            "/api/video",
            json={"title": "My Clip", "description": "desc", "videoUrl": "http://x/video.mp4", "thumbnailUrl": ""},
            headers=auth_headers,
        )
        assert res.status_code == 201
        body = res.json()
        assert body["id"]
        assert body["title"] == "My Clip"
        assert body["description"] == "desc"
        assert body["videoUrl"] == "http://x/video.mp4"
        assert body["thumbnailUrl"] == "http://x/video.mp4"
        assert "createdAt" in body


class TestListVideos:
    def test_public_and_newest_first(self, client, datastore):
        for name, second in (("A", 1), ("B", 2), ("C", 3)):
            create_video(datastore, name, "", f"http://x/{name}.mp4", created_at=datetime(2025, 1, 1, 0, 0, second))
        res = client.get("/api/videos")
        assert res.status_code == 200
        assert [v["title"] for v in res.json()] == ["C", "B", "A"]

    def test_database_down_returns_empty_list(self, broken_datastore):
        app = create_app(datastore=broken_datastore)
        with TestClient(app) as c:
            res = c.get("/api/videos")
        assert res.status_code == 200
        assert res.json() == []

    def test_database_down_on_create_is_generic_500(self, broken_datastore):
        from videoshare.auth import create_access_token

        app = create_app(datastore=broken_datastore)
        headers = {"Authorization": f"Bearer {create_access_token('user-1', 'a@example.com')}"}
        with TestClient(app) as c:
            res = c.post("/api/video", json={"title": "t", "videoUrl": "http://x/v.mp4"}, headers=headers)
        assert res.status_code == 500
        assert res.json() == {"error": "Something went wrong. Please try again."}


def test_root_and_health_are_public(client):
    assert client.get("/").status_code == 200
    assert client.get("/health").json() == {"status": "ok"}


def test_unusable_database_url_still_serves_listing():
    from videoshare.database import Datastore

    app = create_app(datastore=Datastore("nosuchdialect://host/db"))
    with TestClient(app) as c:
        res = c.get("/api/videos")
    assert res.status_code == 200
    assert res.json() == []
