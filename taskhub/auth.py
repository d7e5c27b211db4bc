"""Bearer-token authentication.

Tokens are issued by the login service; this module only verifies them and
maps the ``userId``/``role`` claims onto a ``Caller``.
"""
from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from taskhub import config
from taskhub.errors import Unauthenticated
from taskhub.roles import Caller, caller_from_claims

logger = logging.getLogger("taskhub.auth")

bearer = HTTPBearer(auto_error=False)

CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)]


def decode_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except JWTError as exc:
        logger.debug("Invalid JWT token: %s", exc)
        raise Unauthenticated("Invalid or expired token") from exc


def caller_from_token(token: str) -> Caller:
    payload = decode_token(token)
    user_id = payload.get("userId") or payload.get("sub")
    if not user_id:
        raise Unauthenticated("Token is missing the user id claim")
    return caller_from_claims(str(user_id), str(payload.get("role") or ""))


def get_current_caller(creds: CredentialsDep) -> Caller:
    if creds is None or not creds.credentials:
        raise Unauthenticated("Access token required")
    return caller_from_token(creds.credentials)


CallerDep = Annotated[Caller, Depends(get_current_caller)]
