"""Bearer-token authentication: HS256 JWTs issued by the platform's identity service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, timedelta

import jwt
from fastapi import HTTPException, Request

from app.config import get_settings


@dataclass
class AuthContext:
    user_id: str
    role: str  # 'admin' | 'property_manager' | 'inspector' | 'vendor'
    email: str = ""


def create_token(user_id: str, role: str = "admin", email: str = "", expires_in: timedelta = timedelta(hours=1)) -> str:
    """Issue a token. Used by tests and local tooling; production tokens come from the identity service."""
    settings = get_settings()
    payload = {
        "sub": user_id,
        "role": role,
        "email": email,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> AuthContext:
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or missing authentication token")
    if not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or missing authentication token")
    return AuthContext(
        user_id=str(claims["sub"]),
        role=str(claims.get("role", "")),
        email=str(claims.get("email", "")),
    )


def bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def get_current_user(request: Request) -> AuthContext:
    token = bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Invalid or missing authentication token")
    auth = decode_token(token)
    request.state.user_id = auth.user_id
    return auth
