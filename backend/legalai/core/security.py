# legalai/core/security.py
"""
Password hashing (argon2 via passlib) and JWT access tokens (PyJWT, HS256).

Tokens carry `sub` (profile id) and `role`. The role claim is informational:
every request re-reads the profile, so plan changes apply immediately.
"""
import datetime as dt

import jwt  # PyJWT
from passlib.context import CryptContext

from legalai.config import settings

# Argon2 only; no bcrypt fallback
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

JWT_SECRET = settings.jwt_secret
JWT_ALG = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = settings.access_token_expire_minutes


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(user_id: str, role: str) -> str:
    """
    Issue a signed token for `user_id`.

    Args:
        user_id: Profile UUID string
        role: "free", "paid" or "admin" at login time
    """
    now = dt.datetime.now(dt.timezone.utc)
    payload = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": now + dt.timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)


def decode_access_token(token: str) -> dict:
    """
    Raises:
        jwt.ExpiredSignatureError: token has expired
        jwt.InvalidTokenError: token is invalid or malformed
    """
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
