"""
Caller context passed explicitly into every resolver, store view and
aggregator call. Built once per request from the session-derived profile.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from accessdesk_shared.schemas.common import Role


@dataclass(frozen=True)
class AccessContext:
    user_id: Optional[uuid.UUID] = None
    role: Optional[Role] = None

    @classmethod
    def anonymous(cls) -> "AccessContext":
        return cls()

    @classmethod
    def for_profile(cls, profile) -> "AccessContext":
        return cls(user_id=profile.id, role=Role(profile.role))

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == Role.ADMIN
