from fastapi import HTTPException, Request

from .services.flow import INVALID_EMAIL_MESSAGE, is_valid_email

MAX_NAME_LENGTH = 255


def normalize_email(email: str | None) -> str | None:
    value = (email or "").strip().lower()
    return value or None


def validate_user_info(name: str, email: str | None) -> tuple[str, str | None]:
    n = (name or "").strip()
    if not n:
        raise HTTPException(status_code=400, detail="name is required")
    if len(n) > MAX_NAME_LENGTH:
        raise HTTPException(status_code=400, detail="name too long")
    e = normalize_email(email)
    if e is not None and not is_valid_email(e):
        raise HTTPException(status_code=400, detail=INVALID_EMAIL_MESSAGE)
    return n, e


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for") or ""
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    return request.client.host if request.client else None


def user_agent(request: Request) -> str | None:
    return request.headers.get("user-agent") or None
