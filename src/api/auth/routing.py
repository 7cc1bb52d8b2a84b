import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from api.db.session import get_session
from api.db.models import User
from api.errors import BadRequestError, UnauthorizedError
from api.responses import api_response
from .models import UserCreate, UserLogin
from .utils import get_current_user, hash_password, token_response, verify_password

logger = logging.getLogger("auth")

router = APIRouter(tags=["auth"])


@router.post("/signup")
def signup(user: UserCreate, db: Session = Depends(get_session)):
    existing = db.exec(
        select(User).where((User.username == user.username) | (User.email == user.email))
    ).first()
    if existing:
        raise BadRequestError("Username or email already registered")

    db_user = User(
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        avatar=user.avatar,
        hashed_password=hash_password(user.password),
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise BadRequestError("Username or email already registered")
    db.refresh(db_user)
    logger.info(f"Registered user {db_user.id}")
    return api_response(token_response(db_user), "User registered successfully", 201)


@router.post("/login")
def login(user: UserLogin, db: Session = Depends(get_session)):
    db_user = db.exec(select(User).where(User.username == user.username)).first()
    if not db_user or not verify_password(user.password, db_user.hashed_password):
        raise UnauthorizedError("Invalid credentials")
    return api_response(token_response(db_user), "Logged in successfully")


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    profile = current_user.public_profile()
    profile["email"] = current_user.email
    return api_response(profile, "Current user fetched successfully")
