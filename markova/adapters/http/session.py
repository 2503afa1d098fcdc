from fastapi import Request

from markova.core.domain.entities import UserRole
from markova.core.domain.errors import PermissionDeniedError, ValidationError
from markova.core.domain.session import Session


def session_from_request(request: Request) -> Session:
    """Build the caller Session from headers set by the upstream auth provider"""
    user_id = (request.headers.get("x-user-id") or "").strip()
    if not user_id:
        raise PermissionDeniedError("Missing caller identity")

    role = (request.headers.get("x-user-role") or UserRole.USER.value).strip().lower()
    if role not in [member.value for member in UserRole]:
        raise ValidationError(f"Unknown role: {role}", field="X-User-Role")

    language = (request.headers.get("accept-language") or "en").split(",")[0].split("-")[0].strip() or "en"
    return Session(user_id=user_id, role=role, language=language)
