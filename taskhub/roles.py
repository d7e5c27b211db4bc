"""Caller identities.

A caller is either an ``AdminCaller`` (sees every non-deleted row) or a
``MemberCaller`` (sees rows scoped to its own user id). Code that branches on
the caller goes through ``is_admin`` / ``member_id`` so an unknown caller type
raises instead of silently taking the member path.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from taskhub.errors import UnsupportedCaller


@dataclass(frozen=True)
class AdminCaller:
    user_id: str

    @property
    def role(self) -> str:
        return "admin"


@dataclass(frozen=True)
class MemberCaller:
    user_id: str

    @property
    def role(self) -> str:
        return "user"


Caller = Union[AdminCaller, MemberCaller]


def caller_from_claims(user_id: str, role: str) -> Caller:
    token = (role or "").strip().lower()
    if token == "admin":
        return AdminCaller(user_id=user_id)
    if token == "user":
        return MemberCaller(user_id=user_id)
    raise UnsupportedCaller(f"Unsupported role: {role!r}")


def is_admin(caller: Caller) -> bool:
    if isinstance(caller, AdminCaller):
        return True
    if isinstance(caller, MemberCaller):
        return False
    raise UnsupportedCaller(f"Unsupported caller type: {type(caller).__name__}")


def member_id(caller: Caller) -> str | None:
    """User id to scope queries by, or None when the caller sees everything."""
    return None if is_admin(caller) else caller.user_id
