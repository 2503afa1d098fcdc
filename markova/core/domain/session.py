from dataclasses import dataclass

from markova.core.domain.entities import UserRole
from markova.core.domain.errors import PermissionDeniedError


@dataclass(frozen=True)
class Session:
    """Caller identity as asserted by the upstream auth provider"""
    user_id: str
    role: str = UserRole.USER.value
    language: str = "en"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def require_admin(self) -> None:
        if not self.is_admin:
            raise PermissionDeniedError("Administrator role required")

    def can_access(self, owner_id: str) -> bool:
        return self.is_admin or owner_id == self.user_id
