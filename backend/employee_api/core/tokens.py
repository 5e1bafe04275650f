"""
Signed, time-bounded identity tokens.

Tokens are compact JWS values (JWT) signed with the shared secret using an
HMAC algorithm. They are self-contained: nothing is stored server-side, so
a token stays valid until it expires.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Protocol

from jose import jwk, jwt
from jose.exceptions import JWKError, JWTError
from jose.utils import base64url_decode

from employee_api.core.config import settings, HMAC_ALGORITHMS
from employee_api.core.exceptions import (
    AlgorithmMismatch,
    ClaimMissing,
    Expired,
    MalformedToken,
    SignatureInvalid,
    TokenNotYetValid,
)

logger = logging.getLogger("employee_api.tokens")


class TokenSubject(Protocol):
    id: int
    username: str
    email: str


@dataclass(frozen=True)
class TokenClaims:
    """Identity and timing fields carried inside a token."""

    user_id: int
    username: str
    email: str
    iat: int
    exp: int

    @property
    def issued_at(self) -> datetime:
        return datetime.fromtimestamp(self.iat, tz=timezone.utc)

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=timezone.utc)

    def to_payload(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "email": self.email,
            "iat": self.iat,
            "exp": self.exp,
        }


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime
    claims: TokenClaims


def _utc(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def _int_claim(payload: dict[str, Any], name: str) -> int:
    if name not in payload:
        raise ClaimMissing("Invalid token", f"missing {name} claim")
    value = payload[name]
    # bool is an int subclass; JSON numbers may also arrive as integral floats
    if isinstance(value, bool):
        raise ClaimMissing("Invalid token", f"invalid {name} claim")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        raise ClaimMissing("Invalid token", f"invalid {name} claim")
    return value


def _str_claim(payload: dict[str, Any], name: str) -> str:
    if name not in payload:
        raise ClaimMissing("Invalid token", f"missing {name} claim")
    value = payload[name]
    if not isinstance(value, str):
        raise ClaimMissing("Invalid token", f"invalid {name} claim")
    return value


class TokenService:
    """
    Issues and validates access tokens.

    Args:
        secret: Symmetric signing secret
        ttl: Token lifetime, must be positive
        algorithm: HMAC algorithm name (HS256, HS384 or HS512)
    """

    def __init__(self, secret: str, ttl: timedelta, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("Token secret must not be empty")
        if ttl <= timedelta(0):
            raise ValueError("Token lifetime must be positive")
        algorithm = algorithm.upper()
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"Unsupported token algorithm: {algorithm}")
        self._secret = secret
        self._ttl = ttl
        self.algorithm = algorithm
        try:
            self._verify_key = jwk.construct(secret, algorithm)
        except JWKError as exc:
            raise ValueError(f"Unusable token secret: {exc}")

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, user: TokenSubject, now: Optional[datetime] = None) -> IssuedToken:
        """
        Create a signed token for a user.

        Args:
            user: Object exposing ``id``, ``username`` and ``email``
            now: Issue time (defaults to the current UTC time)

        Returns:
            IssuedToken with the encoded token, its expiry and the embedded claims
        """
        issued = int(_utc(now).timestamp())
        claims = TokenClaims(
            user_id=int(user.id),
            username=user.username,
            email=user.email,
            iat=issued,
            exp=issued + int(self._ttl.total_seconds()),
        )
        token = jwt.encode(claims.to_payload(), self._secret, algorithm=self.algorithm)
        return IssuedToken(token=token, expires_at=claims.expires_at, claims=claims)

    def validate(self, token: str, now: Optional[datetime] = None) -> TokenClaims:
        """
        Verify a token and return its claims.

        Raises:
            MalformedToken: Token cannot be parsed
            AlgorithmMismatch: Header does not declare the configured HMAC algorithm
            SignatureInvalid: Signature does not match the server secret
            ClaimMissing: A claim is absent or has the wrong type
            TokenNotYetValid: Issued-at lies in the future
            Expired: Current time is at or past the expiry
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError:
            raise MalformedToken("Invalid token", "failed to parse token")

        alg = header.get("alg")
        if alg != self.algorithm:
            logger.warning(f"Rejected token signed with unexpected algorithm: {alg!r}")
            raise AlgorithmMismatch("Invalid token", f"unexpected signing method: {alg}")

        signing_input, _, signature_segment = token.rpartition(".")
        try:
            signature = base64url_decode(signature_segment.encode("ascii"))
            verified = self._verify_key.verify(signing_input.encode("ascii"), signature)
        except (UnicodeEncodeError, ValueError):
            raise MalformedToken("Invalid token", "failed to parse token")
        if not verified:
            raise SignatureInvalid("Invalid token", "signature verification failed")

        try:
            payload = jwt.get_unverified_claims(token)
        except JWTError:
            raise MalformedToken("Invalid token", "invalid token claims")

        claims = TokenClaims(
            user_id=_int_claim(payload, "user_id"),
            username=_str_claim(payload, "username"),
            email=_str_claim(payload, "email"),
            iat=_int_claim(payload, "iat"),
            exp=_int_claim(payload, "exp"),
        )
        if claims.exp <= claims.iat:
            raise MalformedToken("Invalid token", "expiration precedes issue time")

        current = _utc(now).timestamp()
        if current < claims.iat:
            raise TokenNotYetValid("Invalid token", "token used before issue time")
        if current >= claims.exp:
            raise Expired("Invalid token", "token has expired")

        return claims


# Global instance
_token_service: Optional[TokenService] = None


def get_token_service() -> TokenService:
    """Get the global token service built from settings."""
    global _token_service
    if _token_service is None:
        _token_service = TokenService(
            secret=settings.SECRET_KEY,
            ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            algorithm=settings.ALGORITHM,
        )
    return _token_service
