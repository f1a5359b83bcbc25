"""
Client side of the direct-to-CDN upload: validate locally, fetch a grant from
/api/auth/imagekit-auth, then POST the bytes to ImageKit with progress reporting.
One submission at a time per client; errors never leave the client busy.
"""
import asyncio
import logging
import mimetypes
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import httpx

from videoshare.core.errors import (
    AuthorizationError,
    BusyError,
    UploadError,
    ValidationError,
)

logger = logging.getLogger(__name__)

IMAGEKIT_UPLOAD_URL = "https://upload.imagekit.io/api/v1/files/upload"
MAX_UPLOAD_SIZE_BYTES = 100 * 1024 * 1024  # 100 MiB
DEFAULT_FOLDER = "/videos"
CHUNK_SIZE = 64 * 1024

ProgressCallback = Callable[[int], None]


@dataclass
class LocalFile:
    """A file picked for upload. content_type is guessed from the name when not given."""
    path: Path
    content_type: str | None = None

    def __post_init__(self):
        self.path = Path(self.path)
        if self.content_type is None:
            self.content_type = mimetypes.guess_type(self.path.name)[0] or "application/octet-stream"

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    def open(self):
        return self.path.open("rb")


@dataclass
class UploadResult:
    url: str
    thumbnail_url: str | None = None
    name: str | None = None
    file_id: str | None = None
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_response(cls, data: dict) -> "UploadResult":
        return cls(
            url=data["url"],
            thumbnail_url=data.get("thumbnailUrl") or None,
            name=data.get("name"),
            file_id=data.get("fileId"),
            raw=data,
        )


class _Progress:
    """Whole percentages of file bytes sent, reported only when they increase."""

    def __init__(self, total: int, on_progress: ProgressCallback | None):
        self._total = total
        self._on_progress = on_progress
        self._sent = 0
        self.last_percent = 0

    def advance(self, nbytes: int) -> None:
        self._sent += nbytes
        self.report(self._sent * 100 // self._total if self._total else 100)

    def report(self, percent: int) -> None:
        percent = max(0, min(100, percent))
        if percent > self.last_percent:
            self.last_percent = percent
            if self._on_progress:
                self._on_progress(percent)


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', "%22").replace("\r", "%0D").replace("\n", "%0A")


class _MultipartUpload:
    """
    multipart/form-data body with the file part streamed from disk. File reads run in a
    worker thread so a large upload does not block the event loop.
    """

    def __init__(self, form: dict[str, str], file: LocalFile, size: int, f, progress: _Progress):
        self.boundary = secrets.token_hex(16)
        parts = [
            f'--{self.boundary}\r\nContent-Disposition: form-data; name="{name}"\r\n\r\n{value}\r\n'
            for name, value in form.items()
        ]
        parts.append(
            f'--{self.boundary}\r\nContent-Disposition: form-data; name="file"; filename="{_quote(file.name)}"\r\n'
            f"Content-Type: {file.content_type}\r\n\r\n"
        )
        self._head = "".join(parts).encode()
        self._tail = f"\r\n--{self.boundary}--\r\n".encode()
        self._file_size = size
        self._f = f
        self._progress = progress

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": f"multipart/form-data; boundary={self.boundary}",
            "Content-Length": str(len(self._head) + self._file_size + len(self._tail)),
        }

    async def __aiter__(self):
        yield self._head
        while True:
            chunk = await asyncio.to_thread(self._f.read, CHUNK_SIZE)
            if not chunk:
                break
            self._progress.advance(len(chunk))
            yield chunk
        yield self._tail


class UploadClient:
    def __init__(
        self,
        auth_endpoint: str,
        public_key: str,
        *,
        upload_url: str = IMAGEKIT_UPLOAD_URL,
        folder: str = DEFAULT_FOLDER,
        use_unique_file_name: bool = True,
        max_size_bytes: int = MAX_UPLOAD_SIZE_BYTES,
        timeout: float = 60.0,
        http: httpx.AsyncClient | None = None,
    ):
        self.auth_endpoint = auth_endpoint
        self.public_key = public_key
        self.upload_url = upload_url
        self.folder = folder
        self.use_unique_file_name = use_unique_file_name
        self.max_size_bytes = max_size_bytes
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)
        self._busy = False

    @property
    def is_busy(self) -> bool:
        return self._busy

    async def __aenter__(self) -> "UploadClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def validate(self, file: LocalFile, file_type: str = "video") -> None:
        """Local checks only; raises ValidationError before any network call."""
        if file_type == "video" and not (file.content_type or "").startswith("video/"):
            raise ValidationError("invalid file type", "Please upload a valid video file.")
        try:
            size = file.size
        except OSError as e:
            raise _unreadable(file, e) from e
        if size > self.max_size_bytes:
            raise ValidationError(
                "file too large",
                f"File size exceeds the {self.max_size_bytes // (1024 * 1024)}MB limit.",
            )

    async def submit_file(
        self,
        file: LocalFile,
        file_type: str = "video",
        on_progress: ProgressCallback | None = None,
    ) -> UploadResult:
        """
        Validate, obtain a grant, upload. Raises BusyError if another submission is pending,
        ValidationError / AuthorizationError / UploadError otherwise. Never retries.
        """
        if self._busy:
            raise BusyError("An upload is already in progress")
        self._busy = True
        try:
            self.validate(file, file_type)
            grant = await self._request_grant()
            return await self._upload(file, grant, on_progress)
        finally:
            self._busy = False

    async def _request_grant(self) -> dict[str, Any]:
        try:
            res = await self._http.get(self.auth_endpoint)
        except httpx.HTTPError as e:
            logger.warning("Upload grant request failed: %s", e)
            raise AuthorizationError(f"Upload grant request failed: {e}", "Could not authorize upload.") from e
        if not res.is_success:
            raise AuthorizationError(
                f"Upload grant request returned {res.status_code}",
                _error_message(res) or "Could not authorize upload.",
            )
        try:
            data = res.json()
            return {
                "token": str(data["token"]),
                "expire": int(data["expiresAt"]),
                "signature": str(data["signature"]),
            }
        except (ValueError, KeyError, TypeError) as e:
            raise AuthorizationError(f"Malformed upload grant: {e}", "Could not authorize upload.") from e

    async def _upload(self, file: LocalFile, grant: dict[str, Any], on_progress: ProgressCallback | None) -> UploadResult:
        form = {
            "fileName": file.name,
            "publicKey": self.public_key,
            "signature": grant["signature"],
            "expire": str(grant["expire"]),
            "token": grant["token"],
            "folder": self.folder,
            "useUniqueFileName": "true" if self.use_unique_file_name else "false",
        }
        try:
            total = file.size
            f = file.open()
        except OSError as e:
            raise _unreadable(file, e) from e
        progress = _Progress(total, on_progress)
        logger.info("Uploading %s (%d bytes) to %s", file.name, total, self.folder)
        with f:
            body = _MultipartUpload(form, file, total, f, progress)
            try:
                res = await self._http.post(self.upload_url, content=body, headers=body.headers)
            except httpx.TimeoutException as e:
                logger.warning("Upload of %s timed out", file.name)
                raise UploadError(f"Upload timed out: {e}", cause=e, retryable=True) from e
            except httpx.HTTPError as e:
                logger.warning("Upload of %s failed: %s", file.name, e)
                raise UploadError(f"Upload failed: {e}", cause=e) from e
            except OSError as e:
                logger.warning("Reading %s failed mid-upload: %s", file.name, e)
                raise UploadError(f"Could not read {file.name}: {e}", cause=e) from e

        if not res.is_success:
            message = _error_message(res) or f"CDN returned {res.status_code}"
            logger.warning("Upload of %s rejected (%s): %s", file.name, res.status_code, message)
            raise UploadError(f"Upload failed: {message}", retryable=res.status_code >= 500)
        try:
            result = UploadResult.from_response(res.json())
        except (ValueError, KeyError, TypeError) as e:
            raise UploadError(f"Unexpected upload response: {e}", cause=e) from e
        progress.report(100)
        logger.info("Uploaded %s -> %s", file.name, result.url)
        return result


def _unreadable(file: LocalFile, e: OSError) -> ValidationError:
    return ValidationError(f"file not readable: {e}", f"Could not read {file.name}.")


def _error_message(res: httpx.Response) -> str | None:
    try:
        data = res.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        return data.get("message") or data.get("error")
    return None
