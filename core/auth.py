from typing import Optional

from .exceptions import AuthRequired


def require_user(user_id: Optional[str]) -> str:
    """Return the normalized user id or raise AuthRequired."""
    if user_id is None or not str(user_id).strip():
        raise AuthRequired()
    return str(user_id).strip()
