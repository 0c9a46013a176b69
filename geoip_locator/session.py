from collections.abc import MutableMapping
from typing import Any, Protocol

SESSION_KEY = "geoip-location"


class SessionStore(Protocol):
    """Key-value session storage owned by the embedding application."""

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class MappingSessionStore:
    """`SessionStore` over a mutable mapping such as Starlette's `request.session` or a plain dict."""

    def __init__(self, data: MutableMapping[str, Any] | None = None) -> None:
        self._data: MutableMapping[str, Any] = data if data is not None else {}

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
