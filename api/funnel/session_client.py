from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import FUNNEL_API_BASE_URL, FUNNEL_API_TIMEOUT_SECONDS
from .errors import SessionNotFound, StoreUnavailable

logger = logging.getLogger(__name__)


class HttpSessionStore:
    """Remote session store backed by the funnel API.

    Transport failures, server errors and undecodable bodies surface as
    ``StoreUnavailable``; a 404 surfaces as ``SessionNotFound``.
    """

    def __init__(
        self,
        base_url: str = FUNNEL_API_BASE_URL,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = FUNNEL_API_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def _request(self, method: str, path: str, *, session_id: str | None = None, json: Any = None) -> dict[str, Any]:
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise StoreUnavailable(f"{method} {path} failed: {exc}") from exc
        if resp.status_code == 404 and session_id:
            raise SessionNotFound(session_id)
        if resp.status_code >= 400:
            raise StoreUnavailable(f"{method} {path} returned {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise StoreUnavailable(f"{method} {path} returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise StoreUnavailable(f"{method} {path} returned unexpected payload")
        return data

    async def create_session(self, referrer_id: str | None = None) -> dict[str, Any]:
        return await self._request("POST", "/sessions", json={"referrer_id": referrer_id})

    async def get_session(self, session_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/sessions/{session_id}", session_id=session_id)

    async def update_answers(self, session_id: str, answers: dict[str, Any], step: int) -> dict[str, Any]:
        return await self._request(
            "PUT",
            f"/sessions/{session_id}/answers",
            session_id=session_id,
            json={"answers": answers, "step": step},
        )

    async def update_user_info(self, session_id: str, name: str, email: str | None = None) -> dict[str, Any]:
        return await self._request(
            "PATCH",
            f"/sessions/{session_id}/user-info",
            session_id=session_id,
            json={"name": name, "email": email},
        )

    async def complete_session(
        self,
        session_id: str,
        archetype_id: str,
        archetype_data: dict[str, Any],
        is_retake: bool = False,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/sessions/{session_id}/complete",
            session_id=session_id,
            json={"archetype_id": archetype_id, "archetype_data": archetype_data, "is_retake": is_retake},
        )

    async def generate_results(self, session_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/sessions/{session_id}/results", session_id=session_id)

    async def send_analytics(self, events: list[dict[str, Any]]) -> None:
        try:
            await self._request("POST", "/analytics/events", json={"events": events})
        except StoreUnavailable as exc:
            logger.warning("[analytics] dropped batch of %s events: %s", len(events), exc)

    async def aclose(self) -> None:
        await self._client.aclose()
