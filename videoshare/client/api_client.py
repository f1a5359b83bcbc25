"""HTTP client for the VideoShare API: login, publish video metadata, list videos."""
import logging
from typing import Any

import httpx

from videoshare.core.errors import AuthorizationError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)


class VideoApiClient:
    def __init__(self, base_url: str, token: str | None = None, *, timeout: float = 60.0, http: httpx.AsyncClient | None = None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    @property
    def grant_endpoint(self) -> str:
        return f"{self.base_url}/api/auth/imagekit-auth"

    async def __aenter__(self) -> "VideoApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def register(self, email: str, password: str) -> None:
        try:
            res = await self._http.post("/api/auth/register", json={"email": email, "password": password})
        except httpx.HTTPError as e:
            raise AuthorizationError(f"Register request failed: {e}", "Could not reach the server.") from e
        if res.status_code != 201:
            raise ValidationError(f"Register failed ({res.status_code})", _message(res) or "Registration failed")

    async def login(self, email: str, password: str) -> str:
        try:
            res = await self._http.post("/api/auth/login", json={"email": email, "password": password})
        except httpx.HTTPError as e:
            raise AuthorizationError(f"Login request failed: {e}", "Could not reach the server.") from e
        if res.status_code != 200:
            raise AuthorizationError(f"Login failed ({res.status_code})", _message(res) or "Invalid email or password")
        self.token = res.json()["access_token"]
        return self.token

    async def create_video(
        self,
        title: str,
        description: str,
        video_url: str,
        thumbnail_url: str | None = None,
    ) -> dict[str, Any]:
        body = {
            "title": title,
            "description": description,
            "videoUrl": video_url,
            "thumbnailUrl": thumbnail_url or video_url,
        }
        try:
            res = await self._http.post("/api/video", json=body, headers=self._headers())
        except httpx.HTTPError as e:
            raise PersistenceError(f"Publishing video failed: {e}", "Upload failed. Please try again.") from e
        if res.status_code == 201:
            return res.json()
        message = _message(res) or f"Server returned {res.status_code}"
        if res.status_code in (400, 422):
            raise ValidationError(message)
        if res.status_code == 401:
            raise AuthorizationError("Not authenticated", "Please sign in first.")
        raise PersistenceError(f"Publishing video failed: {message}", f"Upload failed: {message}")

    async def list_videos(self) -> list[dict[str, Any]]:
        try:
            res = await self._http.get("/api/videos")
            res.raise_for_status()
        except httpx.HTTPError as e:
            raise PersistenceError(f"Listing videos failed: {e}", "Could not load videos.") from e
        return res.json()


def _message(res: httpx.Response) -> str | None:
    try:
        data = res.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        return data.get("error") or data.get("detail")
    return None
