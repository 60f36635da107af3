# dashboard/app/deps.py (keeps the client singleton, exposed as a dependency)

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from supabase import Client, create_client

from dashboard.app.config import settings

log = logging.getLogger("auth")

_client: Client | None = None


def get_supabase() -> Client:
    global _client
    if _client is None:
        _client = create_client(str(settings.SUPABASE_URL),
                                settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


auth_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None


async def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    supa: Client = Depends(get_supabase),
) -> CurrentUser:
    """
    Takes the Supabase access token from `Authorization: Bearer <token>`,
    validates it against GoTrue and returns the minimal user data.
    """
    if cred is None or cred.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    token = cred.credentials
    try:
        res = supa.auth.get_user(token)
        user = res.user
        if not user:
            raise HTTPException(status_code=401, detail="Invalid token")

        meta = getattr(user, "user_metadata", None) or {}
        name = None
        if isinstance(meta, dict):
            name = meta.get("full_name") or meta.get("name")

        return CurrentUser(id=str(user.id), email=user.email, name=name)
    except HTTPException:
        raise
    except Exception:
        log.warning("auth.invalid_token")
        raise HTTPException(status_code=401, detail="Invalid/expired token")
