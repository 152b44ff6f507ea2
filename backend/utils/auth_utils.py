import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, HTTPException, status, Request
from starlette.requests import HTTPConnection
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.users import Actor

load_dotenv()

# Tokens are issued by the office's identity service; this module only verifies them.
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")


def bearer_token(request: HTTPConnection) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header is missing",
        )

    # The token is expected to be in the format "Bearer <token>"
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )
    return parts[1]


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token validation failed: {e}"
        )


def resolve_actor(db: Session, token: str) -> Actor:
    """
    Resolve a bearer token to an explicit Actor.

    The token's ``sub`` claim is the user id. Workflows receive the returned
    Actor as a parameter instead of reading it from request state.
    """
    payload = decode_token(token)
    user_id: Optional[str] = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is missing the subject claim"
        )
    try:
        user = db.get(User, int(user_id))
    except (TypeError, ValueError):
        user = None
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )
    return Actor(id=user.id, role=user.role, name=user.name, email=user.email)


def get_current_actor(request: Request, db: Session = Depends(get_db)) -> Actor:
    """FastAPI dependency for HTTP routes."""
    return resolve_actor(db, bearer_token(request))


def create_access_token(user_id: int) -> str:
    """Mint a token for a user; used by tooling and tests."""
    return jwt.encode({"sub": str(user_id)}, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def get_user_identifier(actor) -> str:
    """Human-readable identifier used in created_by/updated_by columns and logs."""
    if actor is None:
        return "system"
    return actor.identifier
