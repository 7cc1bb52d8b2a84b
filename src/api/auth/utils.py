import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlmodel import Session

from api.config import settings
from api.db.models import User
from api.db.session import get_session
from api.errors import UnauthorizedError

logger = logging.getLogger("auth")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# auto_error is off so a missing header goes through the same error envelope
bearer_token = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)


def _signing_key() -> str:
    if not settings.SECRET_KEY:
        raise RuntimeError("SECRET_KEY must be set to sign or verify access tokens")
    return settings.SECRET_KEY


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    """Signed token carrying the user's id and public identity claims."""
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": user.id,
        "username": user.username,
        "email": user.email,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    if settings.JWT_ISSUER:
        claims["iss"] = settings.JWT_ISSUER
    if settings.JWT_AUDIENCE:
        claims["aud"] = settings.JWT_AUDIENCE
    return jwt.encode(claims, _signing_key(), algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        _signing_key(),
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE or None,
        issuer=settings.JWT_ISSUER or None,
        options={"verify_aud": bool(settings.JWT_AUDIENCE)},
    )


def token_response(user: User) -> dict:
    return {
        "access_token": create_access_token(user),
        "token_type": "bearer",
        "user": user.public_profile(),
    }


def get_current_user(
    token: str | None = Depends(bearer_token),
    db: Session = Depends(get_session),
) -> User:
    """Resolve the bearer token to the acting user.

    Handlers receive the result as an explicit ``current_user`` parameter;
    nothing downstream reads identity from request state.
    """
    if not token:
        raise UnauthorizedError("Unauthorized request")
    try:
        claims = decode_access_token(token)
    except ExpiredSignatureError:
        raise UnauthorizedError("Access token expired")
    except JWTError as e:
        logger.info(f"Rejected access token: {e}")
        raise UnauthorizedError("Invalid access token")

    user = db.get(User, str(claims.get("sub") or ""))
    if user is None:
        raise UnauthorizedError("Invalid access token")
    return user
