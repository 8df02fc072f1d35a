import json
from pathlib import Path
from typing import Any, Optional

CART_KEY = "cart"
WISHLIST_KEY = "wishlist"


class LocalStorage:
    """JSON key/value store standing in for browser local storage."""

    def __init__(self, path: Optional[str] = None):
        self._path = Path(path) if path else None
        self._data = self._load()

    def _load(self) -> dict:
        if self._path is None or not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            data = None
        # A corrupt guest cache is discarded rather than blocking sign-in
        return data if isinstance(data, dict) else {}

    def _save(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self._data), encoding="utf-8")

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._save()
