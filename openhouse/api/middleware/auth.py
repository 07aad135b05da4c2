"""Bearer-token authentication dependencies for FastAPI."""

from fastapi import Header, HTTPException, status

from openhouse.auth.token_validator import TokenValidator


class AuthMiddleware:
    """Authentication using hosted-auth access tokens."""

    def __init__(self, token_validator: TokenValidator | None = None):
        """Initialize auth middleware.

        Args:
            token_validator: Token validator (defaults to one configured from env)
        """
        self.token_validator = token_validator or TokenValidator()

    def verify_token(self, authorization: str | None) -> dict:
        """Verify access token and extract user info.

        Args:
            authorization: Authorization header with Bearer token

        Returns:
            User information dict

        Raises:
            HTTPException: If token is invalid or missing
        """
        if not authorization:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing Authorization header",
                headers={"WWW-Authenticate": "Bearer"},
            )

        token = self.token_validator.extract_token_from_header(authorization)
        if not token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid Authorization header format. Expected: Bearer <token>",
                headers={"WWW-Authenticate": "Bearer"},
            )

        user_info = self.token_validator.validate_token(token)
        if not user_info:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
                headers={"WWW-Authenticate": "Bearer"},
            )

        return user_info


# Global instance
auth_middleware = AuthMiddleware()


async def get_current_user(authorization: str = Header(None)) -> dict:
    """FastAPI dependency for getting current authenticated user.

    Args:
        authorization: Authorization header

    Returns:
        User information dict

    Example:
        @router.get("/profiles/me")
        async def me(user: dict = Depends(get_current_user)):
            return {"user_id": user["user_id"]}
    """
    return auth_middleware.verify_token(authorization)


async def get_optional_user(authorization: str = Header(None)) -> dict | None:
    """FastAPI dependency for optional authentication.

    Args:
        authorization: Authorization header

    Returns:
        User information dict if authenticated, None otherwise
    """
    if not authorization:
        return None

    try:
        return auth_middleware.verify_token(authorization)
    except HTTPException:
        return None
