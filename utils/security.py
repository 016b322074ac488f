"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT signing/verification via PyJWT
- JTI generation for token identifiers
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

ph = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    if not password or not password_hash:
        return False
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def sign_token(
    subject: str,
    token_type: str,
    secret: str,
    expires_in: timedelta,
    now: datetime,
    algorithm: str = "HS256",
    issuer: str | None = None,
) -> str:
    """
    Sign a JWT carrying a single identity claim (sub).
    A fresh jti is embedded so two tokens signed in the same second differ.
    """
    payload = {
        "sub": str(subject),
        "type": token_type,
        "jti": generate_jti(),
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    if issuer:
        payload["iss"] = issuer
    return jwt.encode(payload, secret, algorithm=algorithm)


def verify_token(
    token: str,
    secret: str,
    expected_type: str,
    algorithm: str = "HS256",
    issuer: str | None = None,
) -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises jwt.InvalidTokenError on a bad
    signature, an expired token, a foreign issuer or a token of the wrong type.
    """
    decoded = jwt.decode(
        token,
        secret,
        algorithms=[algorithm],
        issuer=issuer,
        options={"require": ["sub", "exp", "type"]},
    )
    if decoded.get("type") != expected_type:
        raise jwt.InvalidTokenError("Wrong token type")
    return decoded
