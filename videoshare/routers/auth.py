"""
Accounts (register, login, me) and the ImageKit upload grant.
The grant route is public, like the rest of /api/auth.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from videoshare.config import Settings, get_settings
from videoshare.database import get_db
from videoshare.models.user import User
from videoshare.auth import create_access_token, get_current_user, hash_password, verify_password
from videoshare.schemas.user import UserResponse, RegisterRequest, LoginRequest, TokenResponse
from videoshare.schemas.video import UploadGrantResponse
from videoshare.services.upload_grant import issue_upload_grant

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

INVALID_REGISTRATION = "Invalid input - password should be at least 6 characters long."


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account with email and password."""
    email = body.email.strip().lower()
    if not email or "@" not in email or len(body.password.strip()) < 6:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=INVALID_REGISTRATION)
    if db.query(User).filter(func.lower(User.email) == email).first():
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="User already exists!")
    db.add(User(email=email, password=hash_password(body.password)))
    try:
        db.commit()
    except IntegrityError:
        # concurrent registration with the same email
        db.rollback()
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="User already exists!")
    logger.info("User registered: %s", email)
    return {"message": "User created!"}


@router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Login with email and password."""
    email = body.email.strip().lower()
    user = db.query(User).filter(func.lower(User.email) == email).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if not verify_password(body.password, user.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    token = create_access_token(user.id, user.email)
    return TokenResponse(access_token=token)


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)


@router.get("/imagekit-auth", response_model=UploadGrantResponse)
def imagekit_auth(settings: Settings = Depends(get_settings)):
    """Signed, time-boxed grant for a direct upload to ImageKit. 500 {error} if the private key is missing."""
    grant = issue_upload_grant(settings.imagekit_private_key, ttl_seconds=settings.upload_grant_ttl_seconds)
    return UploadGrantResponse(token=grant.token, expires_at=grant.expires_at, signature=grant.signature)
