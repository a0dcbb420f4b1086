"""Explicit user identity threaded through every core operation"""
from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class UserSession:
    """Who is logged in; username None means anonymous"""
    username: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return bool(self.username)

ANONYMOUS = UserSession()
