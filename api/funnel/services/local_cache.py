from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

SESSION_KEY = "nf_survey_session_id"
ANSWERS_KEY = "nf_survey_answers"
STEP_KEY = "nf_survey_step"
USER_INFO_KEY = "nf_survey_user_info"
SESSION_CACHE_KEYS = (SESSION_KEY, ANSWERS_KEY, STEP_KEY, USER_INFO_KEY)


class MemoryCache:
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, Any]:
        return dict(self._data)


class JsonFileCache(MemoryCache):
    """Local cache persisted to one JSON file so a restarted process can resume."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        super().__init__(self._load())

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("[cache] unreadable cache file %s, starting empty", str(self._path))
            return {}
        return data if isinstance(data, dict) else {}

    def _flush(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=str(self._path.parent), suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f)
            os.replace(tmp, self._path)
        except OSError:
            logger.warning("[cache] failed to write %s", str(self._path), exc_info=True)

    def set(self, key: str, value: Any) -> None:
        super().set(key, value)
        self._flush()

    def remove(self, key: str) -> None:
        super().remove(key)
        self._flush()
