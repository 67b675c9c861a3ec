"""
In-memory registry of chart wrappers served by the API.
"""

from __future__ import annotations

import threading
from uuid import UUID, uuid4

from chartembed.components.chart_embed import ChartWrapper


class InMemoryChartRegistry:
    """Chart wrappers by id. One wrapper per embedding view."""

    def __init__(self) -> None:
        self._wrappers: dict[UUID, ChartWrapper] = {}
        self._lock = threading.Lock()

    def add(self, wrapper: ChartWrapper) -> UUID:
        chart_id = uuid4()
        with self._lock:
            self._wrappers[chart_id] = wrapper
        return chart_id

    def get(self, chart_id: UUID) -> ChartWrapper | None:
        with self._lock:
            return self._wrappers.get(chart_id)

    def remove(self, chart_id: UUID) -> ChartWrapper | None:
        with self._lock:
            return self._wrappers.pop(chart_id, None)

    def clear(self) -> None:
        with self._lock:
            self._wrappers.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._wrappers)
