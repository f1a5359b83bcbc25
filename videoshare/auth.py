"""
Sessions are bearer JWTs signed with settings.secret_key. A token opens a session only
when it decodes, is unexpired, and has type "access"; the middleware gate and
get_current_user both go through access_payload() for that check.
"""
from datetime import datetime, timedelta
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError as PayloadError
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from videoshare.config import get_settings
from videoshare.database import get_db
from videoshare.models.user import User
from videoshare.schemas.user import TokenPayload

ACCESS_TOKEN = "access"

settings = get_settings()
security = HTTPBearer(auto_error=False)

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str | None) -> bool:
    return bool(hashed) and pwd_context.verify(plain, hashed)


def encode_token(claims: dict, lifetime: timedelta) -> str:
    body = {**claims, "exp": datetime.utcnow() + lifetime}
    return jwt.encode(body, settings.secret_key, algorithm=settings.algorithm)


def create_access_token(user_id: str, email: str) -> str:
    return encode_token(
        {"sub": user_id, "email": email, "type": ACCESS_TOKEN},
        timedelta(minutes=settings.access_token_expire_minutes),
    )


def decode_token(token: str) -> TokenPayload | None:
    """Signature and expiry check only; any token type is returned."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        return TokenPayload.model_validate(claims)
    except (JWTError, PayloadError):
        return None


def access_payload(token: str | None) -> TokenPayload | None:
    if not token:
        return None
    payload = decode_token(token)
    if payload is None or payload.type != ACCESS_TOKEN:
        return None
    return payload


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an 'Authorization: Bearer <token>' header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def has_valid_session(authorization: str | None) -> bool:
    return access_payload(bearer_token(authorization)) is not None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if not credentials:
        raise _unauthorized("Not authenticated")
    payload = access_payload(credentials.credentials)
    if payload is None:
        raise _unauthorized("Invalid or expired token")
    user = db.get(User, payload.sub)
    if user is None:
        raise _unauthorized("User not found")
    return user
