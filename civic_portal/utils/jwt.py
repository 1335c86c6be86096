"""JWT 신원 토큰 유틸리티 모듈.

JWT identity token utility module.
The portal's auth service issues the tokens; this module verifies them and
can mint equivalent tokens for tests and local tooling.

JWT Payload Structure:
    {
        "sub": "citizen@example.com",  # 사용자 이메일 (User email)
        "name": "Rahim Uddin",         # 표시 이름 (Display name)
        "role": "citizen",             # citizen | staff | admin
        "exp": 1234567890,             # 만료 시간 UNIX timestamp (Expiration)
        "type": "access"               # 토큰 유형 (Token type discriminator)
    }
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from civic_portal.config import settings


def create_access_token(data: dict[str, Any]) -> str:
    """JWT 액세스 토큰을 생성합니다.

    Generate an access token with the given payload data.
    Token expires after JWT_ACCESS_TOKEN_EXPIRE_MINUTES.

    Example:
        token = create_access_token({"sub": "admin@city.gov", "role": "admin"})
    """
    to_encode: dict[str, Any] = data.copy()
    expire: datetime = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """JWT 토큰을 디코딩하고 검증합니다.

    Raises:
        jwt.ExpiredSignatureError: 토큰 만료 시 (When token has expired)
        jwt.InvalidTokenError: 유효하지 않은 토큰 (When token is invalid)
    """
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
