"""
Credential check and session tokens for OweLedger
"""
from __future__ import annotations
import hashlib
import hmac
import logging
import secrets
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Tuple

from config import DEFAULT_TOKEN_TTL

logger = logging.getLogger(__name__)

PBKDF2_ROUNDS = 100_000


class AuthError(Exception):
    """Base class for authentication failures"""


class AuthenticationError(AuthError):
    """Unknown user, wrong password, or bad/expired token"""


class UserExistsError(AuthError):
    """Registration for an email that already has an account"""


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str


@dataclass(frozen=True)
class SessionToken:
    token: str
    email: str
    expires_at: float


def hash_password(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ROUNDS)


class AuthGate:
    """In-memory users and sessions"""

    def __init__(self, token_ttl_seconds: int = DEFAULT_TOKEN_TTL, clock: Callable[[], float] = time.time):
        self.token_ttl_seconds = token_ttl_seconds
        self._clock = clock
        self._lock = Lock()
        self._users: Dict[str, Tuple[bytes, bytes]] = {}  # email -> (salt, hash)
        self._sessions: Dict[str, SessionToken] = {}

    def register(self, email: str, password: str) -> SessionToken:
        """Create an account and log it in"""
        email = email.strip().lower()
        if not email or not password:
            raise AuthenticationError("email and password are required")
        salt = secrets.token_bytes(16)
        with self._lock:
            if email in self._users:
                raise UserExistsError(f"user already exists: {email}")
            self._users[email] = (salt, hash_password(password, salt))
        logger.info("registered %s", email)
        return self._issue(email)

    def authenticate(self, credentials: Credentials) -> SessionToken:
        """Check a password and hand out a fresh session token"""
        email = credentials.email.strip().lower()
        with self._lock:
            stored = self._users.get(email)
        if stored is None:
            logger.warning("login for unknown user %s", email)
            raise AuthenticationError("invalid credentials")
        salt, expected = stored
        if not hmac.compare_digest(hash_password(credentials.password, salt), expected):
            logger.warning("bad password for %s", email)
            raise AuthenticationError("invalid credentials")
        return self._issue(email)

    def resolve(self, token: str) -> str:
        """Map a session token to its user, dropping it once expired"""
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                raise AuthenticationError("invalid token")
            if session.expires_at <= self._clock():
                del self._sessions[token]
                raise AuthenticationError("token expired")
        return session.email

    def _issue(self, email: str) -> SessionToken:
        now = self._clock()
        session = SessionToken(
            token=secrets.token_urlsafe(32),
            email=email,
            expires_at=now + self.token_ttl_seconds,
        )
        with self._lock:
            expired = [t for t, s in self._sessions.items() if s.expires_at <= now]
            for t in expired:
                del self._sessions[t]
            self._sessions[session.token] = session
        return session

    def active_sessions(self) -> int:
        with self._lock:
            return len(self._sessions)
