"""Authentication helpers and route dependencies."""

from fastapi import Depends, Header, HTTPException, status

from nebula.config.settings import get_settings


def require_internal_token(
    x_internal_token: str | None = Header(default=None, alias="X-Internal-Token"),
) -> None:
    """
    Ensure that credential endpoints are protected by an internal token.

    The token is a shared secret configured through ``NEBULA_INTERNAL_TOKEN``.
    """

    settings = get_settings()
    expected_token = settings.internal_token
    if not expected_token:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Internal token is not configured.",
        )

    if x_internal_token != expected_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid internal token.",
        )


InternalAuthDependency = Depends(require_internal_token)
