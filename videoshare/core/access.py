"""
Route access policy: an allow-list of public routes checked before handler dispatch.
Anything not matched requires a valid session (Bearer access token).
"""
from dataclasses import dataclass

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from videoshare.auth import has_valid_session


@dataclass(frozen=True)
class AccessRule:
    path: str
    match: str = "prefix"  # "prefix" or "exact"
    methods: frozenset[str] | None = None  # None = any method

    def matches(self, path: str, method: str) -> bool:
        if self.methods is not None and method.upper() not in self.methods:
            return False
        if self.match == "exact":
            return path == self.path
        return path == self.path or path.startswith(self.path.rstrip("/") + "/")


PUBLIC_ROUTES: tuple[AccessRule, ...] = (
    AccessRule("/api/auth"),
    AccessRule("/api/videos", methods=frozenset({"GET", "HEAD"})),
    AccessRule("/", match="exact"),
    AccessRule("/health", match="exact"),
    AccessRule("/docs"),
    AccessRule("/openapi.json", match="exact"),
)


def is_public(path: str, method: str, rules: tuple[AccessRule, ...] = PUBLIC_ROUTES) -> bool:
    if method.upper() == "OPTIONS":
        return True
    return any(rule.matches(path, method) for rule in rules)


def add_session_gate(app: FastAPI, rules: tuple[AccessRule, ...] = PUBLIC_ROUTES) -> None:
    """Reject non-public requests without a valid session before they reach a router."""

    @app.middleware("http")
    async def session_gate(request: Request, call_next):
        if is_public(request.url.path, request.method, rules):
            return await call_next(request)
        if not has_valid_session(request.headers.get("authorization")):
            return JSONResponse(
                status_code=401,
                content={"error": "Not authenticated"},
                headers={"WWW-Authenticate": "Bearer"},
            )
        return await call_next(request)
