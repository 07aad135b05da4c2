"""Hosted-auth access token validation."""

import os
import uuid

import structlog
from jose import JWTError, jwt

logger = structlog.get_logger(__name__)


class TokenValidator:
    """Validates access tokens issued by the hosted auth service.

    Tokens are HS256 JWTs signed with the project's JWT secret; ``sub`` is the
    user's profile id.
    """

    def __init__(
        self,
        jwt_secret: str | None = None,
        audience: str | None = None,
        algorithms: list[str] | None = None,
    ):
        """Initialize token validator.

        Args:
            jwt_secret: Signing secret (defaults to AUTH_JWT_SECRET env var)
            audience: Expected ``aud`` claim (defaults to AUTH_JWT_AUDIENCE or "authenticated")
            algorithms: Accepted signing algorithms
        """
        self.jwt_secret = jwt_secret or os.getenv("AUTH_JWT_SECRET")
        self.audience = audience or os.getenv("AUTH_JWT_AUDIENCE", "authenticated")
        self.algorithms = algorithms or ["HS256"]

    def validate_token(self, token: str) -> dict | None:
        """Validate token and extract user information.

        Args:
            token: Bearer token from Authorization header

        Returns:
            User information dict with user_id, email, role if valid, None otherwise
        """
        if not self.jwt_secret:
            logger.error("auth_jwt_secret_missing")
            return None

        try:
            claims = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=self.algorithms,
                audience=self.audience,
            )
            user_id = uuid.UUID(str(claims["sub"]))
        except (JWTError, KeyError, ValueError) as exc:
            logger.info("auth_token_rejected", reason=type(exc).__name__)
            return None

        return {
            "user_id": user_id,
            "email": claims.get("email"),
            "role": claims.get("role"),
            "token": token,
        }

    def extract_token_from_header(self, authorization: str) -> str | None:
        """Extract bearer token from Authorization header.

        Args:
            authorization: Authorization header value

        Returns:
            Token string if valid format, None otherwise
        """
        if not authorization or not authorization.startswith("Bearer "):
            return None

        token = authorization[7:].strip()  # Remove "Bearer " prefix
        return token or None
