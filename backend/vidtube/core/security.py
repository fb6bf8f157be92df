# 보안/인증 유틸리티
# - 비밀번호 해싱/검증
# - JWT Access/Refresh 토큰 생성/검증 (토큰 종류별 서명 키)
# - 토큰 쿠키 옵션

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from passlib.context import CryptContext
import jwt

from .config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def create_token(subject: dict, secret: str, expires_delta: timedelta) -> str:
    now = datetime.now(tz=timezone.utc)
    payload = {
        "exp": now + expires_delta,
        "iat": now,
        "nbf": now,
        # 같은 초에 발급된 토큰끼리도 서로 달라야 rotation 검사가 의미를 가진다
        "jti": uuid.uuid4().hex,
        **subject,
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)

def create_access_token(user_id: str, email: str, username: str, full_name: str) -> str:
    claims = {
        "sub": str(user_id),
        "type": "access",
        "email": email,
        "username": username,
        "fullName": full_name,
    }
    return create_token(claims, settings.ACCESS_TOKEN_SECRET, timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

def create_refresh_token(user_id: str) -> str:
    return create_token({"sub": str(user_id), "type": "refresh"}, settings.REFRESH_TOKEN_SECRET, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))

def _decode(token: str, secret: str, expected_type: str) -> Dict[str, Any]:
    payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    if payload.get("type") != expected_type:
        raise jwt.InvalidTokenError(f"Expected {expected_type} token")
    if not payload.get("sub"):
        raise jwt.InvalidTokenError("Token has no subject")
    return payload

def decode_access_token(token: str) -> Dict[str, Any]:
    """Access 토큰을 검증하고 payload를 돌려준다. 실패하면 jwt.PyJWTError."""
    return _decode(token, settings.ACCESS_TOKEN_SECRET, "access")

def decode_refresh_token(token: str) -> Dict[str, Any]:
    """Refresh 토큰을 검증하고 payload를 돌려준다. 실패하면 jwt.PyJWTError."""
    return _decode(token, settings.REFRESH_TOKEN_SECRET, "refresh")

def bearer_token(authorization: Optional[str]) -> Optional[str]:
    # "Bearer <token>" 헤더에서 토큰만 꺼낸다
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()

def cookie_options() -> Dict[str, Any]:
    return {
        "httponly": True,
        "secure": settings.COOKIE_SECURE,
        "samesite": settings.COOKIE_SAMESITE,
    }
