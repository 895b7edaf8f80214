"""Durable storage for the access token."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any

from catalog_client.core.config import TOKEN_STORAGE_KEY

LOGGER = logging.getLogger(__name__)


class TokenStore:
    """Single-credential store backed by a JSON file keyed by a fixed name."""

    def __init__(self, path: Path, key: str = TOKEN_STORAGE_KEY) -> None:
        """Initialize store location."""
        self._path = path
        self._key = key
        self._lock = Lock()

    def _read_state(self) -> dict[str, Any]:
        """Read state payload from JSON file with empty fallback."""
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            LOGGER.warning("token_store_unreadable", extra={"path": str(self._path)})
            return {}
        return payload if isinstance(payload, dict) else {}

    def _write_state(self, state: dict[str, Any]) -> None:
        """Persist state payload to JSON file."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(state, ensure_ascii=False, indent=2), encoding="utf-8"
        )

    def load(self) -> str | None:
        """Return the persisted token, or ``None`` when anonymous."""
        with self._lock:
            value = self._read_state().get(self._key)
        token = str(value).strip() if value else ""
        return token or None

    def save(self, token: str) -> None:
        with self._lock:
            state = self._read_state()
            state[self._key] = token
            self._write_state(state)

    def clear(self) -> None:
        with self._lock:
            state = self._read_state()
            if self._key not in state:
                return
            state.pop(self._key, None)
            self._write_state(state)
