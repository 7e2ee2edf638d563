import logging
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from fastapi import APIRouter, Depends, Request, Response
from jose import JWTError, jwt
from sqlmodel import Session, select

from ..config import ACCESS_TOKEN_EXPIRE_MINUTES, COOKIE_SECURE, SECRET_KEY
from ..database import get_db
from ..errors import AuthenticationRequired, ValidationFailed
from ..models import User
from ..schemas.user import AuthResponse, Credentials, TokenClaims, User as UserSchema

logger = logging.getLogger(__name__)

router = APIRouter()

ALGORITHM = "HS256"
SESSION_COOKIE = "token"
# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(_password_bytes(password), hashed_password.encode("utf-8"))


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _user_by(db: Session, column, value) -> Optional[User]:
    return db.exec(select(User).where(column == value)).first()


def create_access_token(user: User, lifetime: Optional[timedelta] = None) -> str:
    """Signed JWT naming the user by id, with the email kept for display."""
    expires = datetime.utcnow() + (lifetime or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {"sub": str(user.id), "email": user.email, "exp": expires}
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def read_token(token: str) -> Optional[TokenClaims]:
    """Decode a token; None when it is malformed, expired or forged."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if not payload.get("sub") or payload.get("exp") is None:
        return None
    return TokenClaims(
        user_id=payload["sub"],
        email=payload.get("email"),
        expires_at=datetime.utcfromtimestamp(payload["exp"]),
    )


def _request_token(request: Request) -> Optional[str]:
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(SESSION_COOKIE)


def _start_session(response: Response, user: User) -> dict:
    token = create_access_token(user)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return {"access_token": token, "token_type": "bearer", "user": user}


async def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Resolve the signed-in user from the bearer token or session cookie."""
    token = _request_token(request)
    if not token:
        raise AuthenticationRequired()

    claims = read_token(token)
    if claims is None:
        raise AuthenticationRequired("Could not validate credentials")

    user = _user_by(db, User.id, claims.user_id)
    if user is None:
        raise AuthenticationRequired("User not found")
    return user


@router.post("/signup", response_model=AuthResponse)
def signup(credentials: Credentials, response: Response, db: Session = Depends(get_db)):
    email = normalize_email(credentials.email)
    if _user_by(db, User.email, email):
        raise ValidationFailed("Email already registered")

    user = User(email=email, hashed_password=get_password_hash(credentials.password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Account created user=%s", user.id)
    return _start_session(response, user)


@router.post("/signin", response_model=AuthResponse)
def signin(credentials: Credentials, response: Response, db: Session = Depends(get_db)):
    user = _user_by(db, User.email, normalize_email(credentials.email))
    if user is None or not verify_password(credentials.password, user.hashed_password):
        logger.info("Rejected sign-in attempt")
        raise AuthenticationRequired("Incorrect email or password")
    return _start_session(response, user)


@router.post("/signout")
def signout(response: Response):
    response.delete_cookie(key=SESSION_COOKIE)
    return {"success": True}


@router.get("/session")
def read_session(request: Request, db: Session = Depends(get_db)):
    """The current session and user, or nulls when signed out."""
    token = _request_token(request)
    claims = read_token(token) if token else None
    user = _user_by(db, User.id, claims.user_id) if claims else None
    if user is None:
        return {"session": None, "user": None}
    return {
        "session": {"expiresAt": claims.expires_at.isoformat(), "userId": str(user.id)},
        "user": {"id": str(user.id), "email": user.email},
    }


@router.get("/me", response_model=UserSchema)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user
