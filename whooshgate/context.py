"""Shared application context and per-request route state."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Optional, TypeVar

T = TypeVar("T")


class AppCtx:
    """A thread-safe store holding at most one value per type."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: dict[type, Any] = {}

    def insert(self, value: Any) -> None:
        """Store ``value`` under its exact type, replacing any earlier one."""
        with self._lock:
            updated = dict(self._data)
            updated[type(value)] = value
            self._data = updated

    def get(self, kind: type[T]) -> Optional[T]:
        return self._data.get(kind)

    def remove(self, kind: type[T]) -> Optional[T]:
        with self._lock:
            if kind not in self._data:
                return None
            updated = dict(self._data)
            value = updated.pop(kind)
            self._data = updated
            return value


@dataclass
class RouteContext:
    """State carried through the handling of one proxied request."""

    upstream_name: Optional[str] = None
    response_transformer: Any = None
    is_upgrade: bool = False
    ws_client_buf: bytearray = field(default_factory=bytearray)
    ws_upstream_buf: bytearray = field(default_factory=bytearray)
    rewrite_host: Optional[str] = None
    start_time: float = field(default_factory=time.monotonic)
    upstream_start_time: Optional[float] = None
    ws_client_decompressor: Any = None
    ws_upstream_decompressor: Any = None

    def clear_ws_buffers(self) -> None:
        self.ws_client_buf.clear()
        self.ws_upstream_buf.clear()