from fastapi import HTTPException

from . import repo


def validate_admin_token(token: str | None, admin_token: str | None) -> None:
    if not admin_token or not token or token != admin_token:
        raise HTTPException(status_code=401, detail="Invalid admin token")


def require_session(session_id: str) -> dict:
    session = repo.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session
