from collections.abc import Callable
from threading import Lock
from typing import Generic, TypeVar

T = TypeVar("T")


class LazyHandle(Generic[T]):
    """Create a value on first use and reuse it afterwards.

    Adapters are shared between concurrent requests, so the factory runs under
    a lock and at most once. Reads after initialization do not take the lock.
    """

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._value: T | None = None
        self._initialized = False
        self._lock = Lock()

    def get(self) -> T:
        if not self._initialized:
            with self._lock:
                if not self._initialized:
                    self._value = self._factory()
                    self._initialized = True
        return self._value  # type: ignore[return-value]

    @property
    def initialized(self) -> bool:
        return self._initialized

    def reset(self) -> T | None:
        """Forget the current value and return it so the caller can release it."""
        with self._lock:
            value, self._value, self._initialized = self._value, None, False
        return value
