from fastapi import Depends, Header, HTTPException, Request

from services.document_index.RoleVisibility import expand_visible_roles


async def verify_api_key(request: Request, x_api_key: str = Header(...)) -> None:
    """Verify the X-Api-Key header against the configured API key.

    Args:
        request (Request): The FastAPI request object (provides app.state).
        x_api_key (str): The value of the X-Api-Key header.

    Raises:
        HTTPException: 401 if the key is missing or does not match.
    """
    helper_config = request.app.state.helper_config
    expected_key = helper_config.get_api_key()
    if x_api_key != expected_key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


async def get_caller_role(x_user_role: str | None = Header(default=None)) -> str | None:
    """Role of the authenticated caller, forwarded by the authentication layer in X-User-Role."""
    return x_user_role.strip() if x_user_role else None


async def get_visible_roles(role: str | None = Depends(get_caller_role)) -> list[str]:
    return expand_visible_roles(role)


def require_roles(*allowed: str):
    """Build a dependency that only lets callers with one of the given roles through.

    Raises:
        HTTPException: 403 if the caller's role is not allowed.
    """
    async def _check(role: str | None = Depends(get_caller_role)) -> str:
        if role not in allowed:
            raise HTTPException(status_code=403, detail=f"Requires one of the roles: {', '.join(allowed)}")
        return role

    return _check
