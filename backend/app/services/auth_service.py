"""
PlaceShare Backend - Authentication Service (Credential Gate)
===============================================================

What:  Issues and verifies signed bearer tokens and hashes passwords.
How:   HS256 JWTs via python-jose carrying `userId`, `email` and `exp`;
       salted PBKDF2-SHA256 password hashes via hashlib.
Who:   The `get_identity` dependency (HTTPBearer) calls `authenticate()`
       for every protected route; the user service issues tokens and hashes passwords.

Gate outcomes:
    no token / malformed header  → AuthenticationError(403), see get_identity
    bad signature / expired      → AuthenticationError(401)
    valid token                  → Identity(user_id)

The caller only ever sees the generic "Authentication failed" message;
the verification detail is logged at WARNING.
"""

import base64
import hashlib
import hmac
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError, ExpiredSignatureError

from app.config import settings
from app.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 260_000
PBKDF2_ALGORITHM = "pbkdf2_sha256"


@dataclass(frozen=True)
class Identity:
    """The authenticated caller. Passed explicitly into every repository call."""
    user_id: uuid.UUID


class CredentialGate:
    """Signs and verifies bearer tokens against the server-held secret."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        expires_minutes: Optional[int] = None,
    ):
        self.secret_key = secret_key or settings.jwt_secret_key
        self.algorithm = algorithm or settings.jwt_algorithm
        self.expires_minutes = expires_minutes or settings.jwt_expires_minutes

    def issue_token(self, user_id: uuid.UUID, email: str) -> str:
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=self.expires_minutes)
        claims = {"userId": str(user_id), "email": email, "exp": expires_at}
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def authenticate(self, token: Optional[str]) -> Identity:
        """
        Verify a bearer token and return the identity it carries.

        Raises:
            AuthenticationError(403): token missing or empty
            AuthenticationError(401): signature invalid, expired, or no valid userId
        """
        if not token:
            raise AuthenticationError(
                status_code=AuthenticationError.FORBIDDEN,
                context={"reason": "missing token"},
            )

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            logger.warning("Rejected expired token")
            raise AuthenticationError(context={"reason": "expired"})
        except JWTError as e:
            logger.warning("Token verification failed: %s", e)
            raise AuthenticationError(context={"reason": "invalid"})

        try:
            user_id = uuid.UUID(str(payload["userId"]))
        except (KeyError, ValueError):
            logger.warning("Token carries no valid userId claim")
            raise AuthenticationError(context={"reason": "bad claims"})

        return Identity(user_id=user_id)


# ── Password Hashing ──────────────────────────────────────────────────────
# Stored format: pbkdf2_sha256$<iterations>$<salt b64>$<hash b64>

def hash_password(password: str, iterations: int = PBKDF2_ITERATIONS) -> str:
    salt = os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, iterations)
    return "$".join([
        PBKDF2_ALGORITHM,
        str(iterations),
        base64.b64encode(salt).decode(),
        base64.b64encode(digest).decode(),
    ])


def verify_password(password: str, stored_hash: str) -> bool:
    try:
        algorithm, iterations, salt_b64, digest_b64 = stored_hash.split("$")
        salt = base64.b64decode(salt_b64)
        expected = base64.b64decode(digest_b64)
        rounds = int(iterations)
    except ValueError:
        logger.error("Unreadable password hash format")
        return False
    if algorithm != PBKDF2_ALGORITHM:
        return False
    candidate = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, rounds)
    return hmac.compare_digest(candidate, expected)


credential_gate = CredentialGate()
